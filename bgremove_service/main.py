from . import config
from .api import create_app

app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = config.get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
