from fastapi import Header, HTTPException, Request

from shared.exceptions import ConfigurationError


async def verify_api_key(request: Request, x_api_key: str = Header(...)) -> None:
    """Verify the X-Api-Key header against the configured API key.

    Args:
        request (Request): The FastAPI request object (provides app.state).
        x_api_key (str): The value of the X-Api-Key header.

    Raises:
        HTTPException: 401 if the key does not match, 503 if no key is configured.
    """
    helper_config = request.app.state.helper_config
    try:
        expected_key = helper_config.get_string_val("API_SERVER_API_KEY")
    except ConfigurationError:
        raise HTTPException(status_code=503, detail="API key is not configured on the server")
    if x_api_key != expected_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
