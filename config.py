import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Environment configuration
ENV = os.getenv("GALLERY_ENV", "p").lower()
if ENV not in ["d", "p"]:
    raise ValueError("GALLERY_ENV must be either 'd' (development) or 'p' (production)")

# NOTE: Only the job proxy needs the Runway key; clients never see it
RUNWAY_API_KEY = os.getenv("GALLERY_RUNWAY_API_KEY")
RUNWAY_API_BASE = os.getenv("GALLERY_RUNWAY_API_BASE", "https://api.dev.runwayml.com")
RUNWAY_API_VERSION = "2024-11-06"

# Same-origin proxy that the client talks to for generation jobs
JOBS_PROXY_URL = os.getenv("GALLERY_JOBS_PROXY_URL", "http://localhost:8080/api")

# Google Cloud resources
GCLOUD_STB_VIDEOS_NAME = os.getenv("GALLERY_STORAGE_BUCKET", "gallery-videos")
FIRESTORE_DATABASE = os.getenv("GALLERY_FIRESTORE_DATABASE", "(default)")

# Background polling of generation tasks
POLL_INTERVAL_SECONDS = float(os.getenv("GALLERY_POLL_INTERVAL_SECONDS", "10"))

# Origin allowed to call the job proxy
CORS_ALLOW_ORIGIN = os.getenv("GALLERY_CORS_ALLOW_ORIGIN", "*")
