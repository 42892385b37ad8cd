from fastapi import FastAPI

from pagespy.api.routes import router
from pagespy.core.config import API_HOST, API_PORT, ENGINE_VERSION
from pagespy.core.logging import setup_logging


def create_app(log_level: str | None = None) -> FastAPI:
    setup_logging(log_level)
    app = FastAPI(
        title="Pagespy",
        version=ENGINE_VERSION,
        description="Détection heuristique de CDN à partir des assets d'une page",
    )
    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    # Logging déjà configuré par create_app : on ne laisse pas uvicorn l'écraser
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_config=None)
