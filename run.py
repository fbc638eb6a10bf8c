"""
Gateway Flow - Standalone Server

Boots the API from a single Python command:
  python run.py

Starts:
  - FastAPI API (docs at /docs)
  - Talks to the demo gateway at GATEWAY_URL (default http://127.0.0.1:5000)
  - Timeline at /api/v1/timeline, metrics at /metrics

Usage:
  pip install -e .
  python run.py
"""
import os
import sys

# Set working directory
project_root = os.path.dirname(os.path.abspath(__file__))
os.chdir(project_root)

# Add service paths
sys.path.insert(0, os.path.join(project_root, "services", "api"))

if __name__ == "__main__":
    import uvicorn
    from config import settings

    print("=" * 60)
    print("  GATEWAY FLOW - Protocol Message Timeline")
    print("=" * 60)
    print(f"  API:      http://localhost:{settings.APP_PORT}/docs")
    print(f"  Timeline: http://localhost:{settings.APP_PORT}/api/v1/timeline/")
    print(f"  Health:   http://localhost:{settings.APP_PORT}/health")
    print(f"  Gateway:  {settings.GATEWAY_URL}")
    print("=" * 60)

    uvicorn.run(
        "main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.APP_DEBUG,
        reload_dirs=[os.path.join(project_root, "services", "api")],
    )
