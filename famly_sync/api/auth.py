"""
Authentication

Exchanges a username/password for an access token. Challenge flows
(multi-factor, device pairing) are not supported and fail fast.
"""
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict

from ..utils.logger import get_logger
from .errors import AuthError
from .queries import AUTHENTICATE_MUTATION, AUTHENTICATE_OPERATION

logger = get_logger('auth')

SUCCEEDED = 'AuthenticationSucceeded'
CHALLENGED = 'AuthenticationChallenged'
FAILED = 'AuthenticationFailed'


@dataclass(frozen=True)
class Session:
    """Access token plus the per-run client instance id sent with every call."""
    access_token: str = field(repr=False)
    installation_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def headers(self) -> Dict[str, str]:
        return {
            'Content-Type': 'application/json',
            'x-famly-accesstoken': self.access_token,
            'x-famly-installationid': self.installation_id,
        }


def build_login_payload(username: str, password: str) -> Dict[str, Any]:
    return {
        'operationName': AUTHENTICATE_OPERATION,
        'variables': {
            'email': username,
            'password': password,
            'deviceId': None,
            'legacy': True,
        },
        'query': AUTHENTICATE_MUTATION,
    }


def parse_login_response(payload: Any) -> str:
    """
    Extract the access token from an Authenticate response.

    Raises:
        AuthError: On GraphQL errors, a failed login, or a challenge
    """
    if not isinstance(payload, dict):
        raise AuthError('Login response is not a JSON object')

    if payload.get('errors'):
        messages = '; '.join(str(e.get('message', e)) for e in payload['errors'] if e)
        raise AuthError(f'Login rejected: {messages}')

    result = (((payload.get('data') or {}).get('me') or {}).get('authenticateWithPassword')) or {}
    variant = result.get('__typename')

    if variant == CHALLENGED:
        raise AuthError(
            'Login requires an additional challenge (multi-factor or device pairing), '
            'which is not supported'
        )

    if variant == FAILED:
        title = result.get('errorTitle') or 'Authentication failed'
        details = result.get('errorDetails')
        raise AuthError(f'{title}: {details}' if details else title)

    access_token = result.get('accessToken')
    if variant != SUCCEEDED or not access_token:
        raise AuthError(f'Unexpected login result: {variant or result.get("status") or "empty"}')

    return access_token


def authenticate(pool, graphql_url: str, username: str, password: str) -> Session:
    """
    Log in and open a session for the rest of the run.

    Args:
        pool: RequestSessionPool used for the call
        graphql_url: GraphQL endpoint
        username: Account email
        password: Account password

    Returns:
        Session with the access token and a fresh installation id

    Raises:
        AuthError: On any non-success response or result variant
    """
    logger.info(f"Logging in as {username}")

    resp = pool.request_with_retry(
        'POST',
        graphql_url,
        error_cls=AuthError,
        description='login',
        json=build_login_payload(username, password),
        headers={'Content-Type': 'application/json'},
    )

    try:
        payload = resp.json()
    except ValueError as e:
        raise AuthError('Login response is not valid JSON') from e

    session = Session(access_token=parse_login_response(payload))
    logger.info(f"Logged in, installation id {session.installation_id}")
    return session
