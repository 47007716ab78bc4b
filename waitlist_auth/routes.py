"""Provides the HTTP interface for organizer authentication."""

from http import HTTPStatus
from typing import Any, Callable, Dict, List, Tuple
from functools import wraps
from urllib.parse import urlencode
import logging

from flask import Blueprint, Response, current_app, g, jsonify, redirect, \
    request, session
from werkzeug.exceptions import BadRequest, Unauthorized

from . import domain
from .identity import IdentityService
from .services.providers import parse_provider

logger = logging.getLogger(__name__)

blueprint = Blueprint('auth', __name__, url_prefix='/auth')

STATE_KEY = 'oauth_state'


def _service() -> IdentityService:
    service: IdentityService = current_app.extensions['identity']
    return service


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest('Expected a JSON object')
    return data


def _required(data: Dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None or value == '':
        raise BadRequest(f'{key} is required')
    return value


def authenticated(func: Callable) -> Callable:
    """Require a bearer session token and load its organizer into ``g``."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        auth_header = request.headers.get('Authorization', '')
        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != 'bearer':
            logger.debug('Auth header missing or malformed')
            raise Unauthorized('Bearer token required')
        g.organizer = _service().authenticate(parts[1])
        return func(*args, **kwargs)
    return wrapper


def session_to_json(auth: domain.Session) -> Dict[str, Any]:
    return {'accessToken': auth.token,
            'organizerId': auth.organizer_id,
            'expiresAt': auth.expires.isoformat()}


def profile_to_json(profile: domain.Profile) -> Dict[str, Any]:
    return {
        'id': profile.organizer_id,
        'email': profile.email,
        'createdAt': profile.created_at.isoformat(),
        'authMethods': profile.auth_methods,
        'socialProviders': [{'provider': str(s.provider),
                             'providerId': s.provider_id}
                            for s in profile.social_providers]
    }


def signup_query(result: domain.SignupRequired) -> str:
    """Query string for the frontend social signup page."""
    params: List[Tuple[str, str]] = [
        ('provider', str(result.provider)),
        ('email', result.email),
        ('providerId', result.provider_id),
    ]
    for key in ('name', 'username', 'picture'):
        if result.profile_hints.get(key):
            params.append((key, str(result.profile_hints[key])))
    if result.signup_ticket:
        params.append(('ticket', result.signup_ticket))
    return urlencode(params)


@blueprint.route('/signup', methods=['POST'])
def signup() -> Tuple[Response, int]:
    """Create an organizer with email and password."""
    data = _body()
    summary = _service().signup(_required(data, 'email'),
                                _required(data, 'password'))
    return jsonify(id=summary.organizer_id, email=summary.email,
                   createdAt=summary.created_at.isoformat()), \
        HTTPStatus.CREATED


@blueprint.route('/login', methods=['POST'])
def login() -> Response:
    """Log in with email and password."""
    data = _body()
    auth = _service().login(data.get('email'), data.get('password'))
    return jsonify(session_to_json(auth))


@blueprint.route('/social/<provider>', methods=['POST'])
def social_token_auth(provider: str) -> Response:
    """Log in or sign up with a provider token held by the client."""
    data = _body()
    auth = _service().social_token_auth(provider, _required(data, 'token'))
    return jsonify(session_to_json(auth))


@blueprint.route('/<provider>', methods=['GET'])
def begin_oauth(provider: str) -> Response:
    """Send the browser to the provider's consent page."""
    url, state = _service().begin_oauth(provider)
    session[STATE_KEY] = state
    return redirect(url, code=HTTPStatus.FOUND)


@blueprint.route('/<provider>/callback', methods=['GET'])
def oauth_callback(provider: str) -> Response:
    """Finish the redirect flow and hand the result to the frontend."""
    parsed = parse_provider(provider)
    expected = session.pop(STATE_KEY, None)
    if not expected or request.args.get('state') != expected:
        logger.debug('OAuth state mismatch for %s', parsed)
        raise BadRequest('OAuth state mismatch')
    if 'error' in request.args:
        raise Unauthorized(f'{parsed} login was not completed')

    result = _service().complete_oauth(parsed, request.args.get('code', ''))

    frontend = current_app.config['FRONTEND_URL'].rstrip('/')
    if isinstance(result, domain.SignupRequired):
        target = f'{frontend}/auth/social-signup?{signup_query(result)}'
    else:
        query = urlencode({'token': result.token})
        target = f'{frontend}/auth/success?{query}'
    return redirect(target, code=HTTPStatus.FOUND)


@blueprint.route('/social-signup', methods=['POST'])
def social_signup() -> Tuple[Response, int]:
    """Create an organizer for a provider identity that required signup."""
    data = _body()
    hints = data.get('additionalData') or data.get('profileHints')
    auth = _service().social_signup(_required(data, 'email'),
                                    _required(data, 'provider'),
                                    str(_required(data, 'providerId')),
                                    profile_hints=hints,
                                    ticket=_required(data, 'ticket'))
    return jsonify(session_to_json(auth)), HTTPStatus.CREATED


@blueprint.route('/me', methods=['GET'])
@blueprint.route('/profile', methods=['GET'])
@authenticated
def profile() -> Response:
    """Get the authenticated organizer's profile."""
    return jsonify(profile_to_json(
        _service().get_full_profile(g.organizer.organizer_id)
    ))


@blueprint.route('/link/<provider>', methods=['POST'])
@authenticated
def link_provider(provider: str) -> Response:
    """Link a provider identity to the authenticated organizer."""
    data = _body()
    message = _service().link_provider(g.organizer.organizer_id, provider,
                                       _required(data, 'token'))
    return jsonify(message=message)


@blueprint.route('/unlink/<provider>', methods=['DELETE'])
@authenticated
def unlink_provider(provider: str) -> Response:
    """Remove a provider from the authenticated organizer."""
    message = _service().unlink_provider(g.organizer.organizer_id, provider)
    return jsonify(message=message)


@blueprint.route('/account', methods=['DELETE'])
@authenticated
def delete_account() -> Response:
    """Delete the authenticated organizer and all of its waitlist data."""
    report = _service().delete_account(g.organizer.organizer_id)
    return jsonify(
        message='Account and all associated data deleted successfully',
        deletedAt=report.deleted_at.isoformat(),
        deletedServices=report.deleted_services,
        deletedParticipants=report.deleted_participants
    )
