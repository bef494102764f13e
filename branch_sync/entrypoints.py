import logging
from typing import Any, Dict, Optional

from auth0_export import TenantConfigDumper

from .config import load_sync_settings
from .pipeline import log_full_error, run_sync
from .secrets import build_secret_provider

logger = logging.getLogger(__name__)


def handle(event: Any = None, context: Any = None, config_file: str = "configs/config.json") -> Optional[Dict[str, Any]]:
    """
    Scheduled-invocation handler (e.g. an AWS Lambda scheduled event).

    The event carries no parameters; everything comes from the config file,
    the environment and the secret store. Returns the run summary, or None
    when the run was aborted.
    """
    try:
        settings = load_sync_settings(config_file=config_file)
        settings.config_loader.setup_logging()
        secret_provider = build_secret_provider(settings)
    except Exception as e:
        logging.basicConfig(level=logging.INFO)
        log_full_error(e)
        return None

    materializer = TenantConfigDumper(config_loader=settings.config_loader)
    summary = run_sync(settings, secret_provider, materializer)
    return summary.as_dict() if summary is not None else None
