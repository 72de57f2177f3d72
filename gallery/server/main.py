from fastapi import FastAPI

from gallery.server.routers.jobs_routes import jobs_router

app = FastAPI()


@app.get("/", tags=["root"])
def root():
    return {"message": "success"}


# Include the routers in the main app with a prefix
# NOTE: CORS headers are set by the proxy routes themselves, which also answer
# preflight with 204; CORSMiddleware would intercept preflight first.
app.include_router(jobs_router, prefix="/api")
