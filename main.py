from config import ENV
from gallery.server.main import app

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app, host="0.0.0.0", port=8080, log_level="debug" if ENV == "d" else "info"
    )
