"""Run script with proper environment loading"""
import os
import sys
from pathlib import Path

# Make the content_organiser package importable without installing it
BACKEND_DIR = Path(__file__).resolve().parent
BASE_DIR = BACKEND_DIR.parent
sys.path.insert(0, str(BACKEND_DIR))

# Load environment variables
from dotenv import load_dotenv

env_file = BASE_DIR / ".env"
load_dotenv(env_file, override=True)

# Set working directory to backend
os.chdir(BACKEND_DIR)

# Now import and run
if __name__ == "__main__":
    import uvicorn
    from content_organiser.core.config import get_settings

    settings = get_settings()

    from content_organiser.main import app

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )
