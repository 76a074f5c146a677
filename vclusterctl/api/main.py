from fastapi import FastAPI

from vclusterctl import __version__
from vclusterctl.api.middleware import AuthMiddleware
from vclusterctl.api.routes import schema, vclusters
from vclusterctl.logging import setup_logging

setup_logging(serving=True)

app = FastAPI(title="vclusterctl", version=__version__)
app.add_middleware(AuthMiddleware)

app.include_router(schema.router)
app.include_router(vclusters.router)
