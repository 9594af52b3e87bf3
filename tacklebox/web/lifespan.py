from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from loguru import logger

from tacklebox.settings import settings
from tacklebox.workflow.config import load_workflow_config


def setup_workflow(app: FastAPI) -> None:
    """
    Builds the workflow tables once and stores them in the
    application's state property.

    Raises WorkflowConfigError for a broken workflow file.

    :param app: fastAPI application.
    """
    app.state.workflow_config = load_workflow_config(settings.workflow_file)


@asynccontextmanager
async def lifespan_setup(
    app: FastAPI,
) -> AsyncGenerator[None, None]:  # pragma: no cover
    """
    Actions to run on application startup.

    :param app: the fastAPI application.
    :return: function that actually performs actions.
    """

    setup_workflow(app)
    logger.info("tacklebox started ({})", settings.environment)

    yield
    logger.info("tacklebox stopped")
