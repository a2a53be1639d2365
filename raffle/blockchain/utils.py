import logging

import requests

logger = logging.getLogger(__name__)

HEALTH_PATH = "/api/v1/health"


def open_session(base_url: str, api_key: str, timeout: int = 45) -> requests.Session:
    """Open an authenticated requests session to the chain gateway.

    The gateway health endpoint is probed once so that misconfiguration is
    reported at start-up instead of on the first draw.

    Parameters
    ----------
    base_url : str
        ``https://`` URL of the gateway.
    api_key : str
        Bearer token sent with every request.
    timeout : int, default: 45
        Timeout in seconds for the health probe.

    Returns
    -------
    requests.Session
        Session with ``Accept`` and ``Authorization`` headers preset.

    Raises
    ------
    RuntimeError
        If the gateway cannot be reached or reports itself unhealthy. The
        underlying exception is chained.
    """
    if not api_key:
        raise RuntimeError("A gateway API key is required to open a session")

    session = requests.Session()
    session.headers.update(
        {"Accept": "application/json", "Authorization": f"Bearer {api_key}"}
    )
    try:
        response = session.get(base_url.rstrip("/") + HEALTH_PATH, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.critical(f"Error occurred while starting gateway session: {e}")
        raise RuntimeError(f"Failed to establish session: {e}") from e

    # Never log the API key
    logger.debug("Gateway session established")
    return session
