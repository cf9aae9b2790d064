"""HTTP front end of the node agent."""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..errors import ExternalCommandError, VersionParseError
from ..model.upgrade import ErrorResponse, UpgradeRequest, UpgradeResponse
from ..utils.logger import get_logger
from .executor import UpgradeExecutor

logger = get_logger(__name__)


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    body = ErrorResponse(error=type(exc).__name__, detail=str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(executor: Optional[UpgradeExecutor] = None) -> FastAPI:
    """Build the agent application around one executor."""
    executor = executor or UpgradeExecutor()

    app = FastAPI(
        title="nodekeeper agent",
        description="Applies OS and Kubernetes upgrades on this node",
        version=__version__,
    )
    app.state.executor = executor

    @app.exception_handler(VersionParseError)
    async def version_parse_error_handler(request: Request, exc: VersionParseError):
        logger.error(f"Rejected upgrade request: {exc}")
        return _error_response(400, exc)

    @app.exception_handler(ExternalCommandError)
    async def external_command_error_handler(request: Request, exc: ExternalCommandError):
        logger.error(f"Upgrade failed: {exc}")
        return _error_response(500, exc)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.post("/upgrade", response_model=UpgradeResponse)
    def upgrade(body: UpgradeRequest) -> UpgradeResponse:
        """Apply one upgrade request; blocks while another is in flight."""
        logger.info(
            f"Upgrade request: os={body.os_version or '-'} "
            f"kubernetes={body.kube_version or '-'} role={body.node_role.value if body.node_role else '-'}"
        )
        executor.apply(body)
        return UpgradeResponse()

    return app
