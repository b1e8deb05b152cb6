import logging
from urllib.parse import parse_qs, urlparse

import requests

from .exceptions import (
    DecodeError,
    DublinBikesError,
    ProtocolError,
    TransportError,
    UnexpectedStatusError,
)
from .models import AccessToken, ClientTokens, OAuthTokens, Trip, parse_trips

log = logging.getLogger(__name__)

__version__ = "0.1.0"
__all__ = [
    "DublinBikesTrips",
    "Trip",
    "DublinBikesError",
    "TransportError",
    "UnexpectedStatusError",
    "ProtocolError",
    "DecodeError",
]

AUTH_SCHEME = "Taknv1"
ACCEPT = "application/json, text/plain, */*"


class DublinBikesTrips:
    account_id: str
    email: str
    password: str
    t: int
    access_token: str
    refresh_token: str
    oauth_refresh_token: str
    oauth_id_token: str
    oauth_token_type: str
    oauth_scope: str
    oauth_expires_in: int
    trips: list
    url_api_base: str
    url_redirect: str
    url_client_tokens: str
    url_login: str
    url_token: str
    url_access_tokens: str
    url_trips: str

    def __init__(
        self,
        account_id,
        email,
        password,
        session=None,
        http_timeout=60,
        url_api_base="https://api.cyclocity.fr",
        url_redirect="https://www.dublinbikes.ie/openid_connect_login",
        client_code="vls.web.dublin:PRD",
        client_key="0398667a307bbd0d8258a8c9b81dc11657aacae406a1b406a6b26b26ecc7f60e",
        contract="dublin",
        authenticate=True,
    ):
        """Create a client and, unless told otherwise, log in straight away.

        Any failure during login raises a DublinBikesError and the instance
        must be discarded.

        :type account_id: str
        :type email: str
        :type password: str
        :type session: requests.Session
        :type http_timeout: int
        :type url_api_base: str
        :type url_redirect: str
        :type client_code: str
        :type client_key: str
        :type contract: str
        :type authenticate: bool
        """

        log.debug("init")
        self.account_id = account_id
        self.email = email
        self.password = password
        self.t = http_timeout
        self._own_session = session is None
        self.s = requests.session() if self._own_session else session
        self.client_code = client_code
        self.client_key = client_key
        self.contract = contract
        self.url_api_base = url_api_base
        self.url_redirect = url_redirect
        self.url_client_tokens = "{}/auth/environments/PRD/client_tokens".format(self.url_api_base)
        self.url_login = "{}/identities/users/login".format(self.url_api_base)
        self.url_token = "{}/identities/token".format(self.url_api_base)
        self.url_access_tokens = "{}/auth/access_tokens".format(self.url_api_base)
        self.url_trips = "{}/contracts/{}/accounts/{}/trips".format(self.url_api_base, self.contract, self.account_id)

        self.access_token = None
        self.refresh_token = None
        self.oauth_refresh_token = None
        self.oauth_id_token = None
        self.oauth_token_type = None
        self.oauth_scope = None
        self.oauth_expires_in = None
        self.trips = []
        self._authenticated = False

        if authenticate:
            try:
                self.authenticate()
            except DublinBikesError:
                self.close()
                raise

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        """Close the HTTP session if this client created it."""

        if self._own_session:
            log.debug("closing session")
            self.s.close()

    @property
    def is_authenticated(self):
        return self._authenticated

    def authenticate(self):
        """Run the four login steps in order, stopping at the first failure."""

        log.info("authenticate")
        self._authenticated = False
        self.authenticate_client()
        code = self.perform_login()
        self.exchange_code_for_token(code)
        self.refresh_access_token()
        self._authenticated = True
        log.info("authenticated account {}".format(self.account_id))

    def _request(self, operation, method, url, expected=requests.codes["ok"], **kwargs):
        """Send one request and check its status.

        Raises TransportError when the request cannot be made and
        UnexpectedStatusError when the status is not ``expected``.
        """

        try:
            res = self.s.request(method, url, timeout=self.t, **kwargs)
        except requests.exceptions.RequestException as err:
            raise TransportError(operation, "error making request: {}".format(err)) from err

        log.debug("{} {} status {}".format(method, operation, res.status_code))
        if res.status_code != expected:
            raise UnexpectedStatusError(operation, res.status_code, res.reason, expected=expected)
        return res

    def _decode(self, operation, res, parse):
        try:
            return parse(res.json())
        except ValueError as err:
            raise DecodeError(operation, "error decoding response body: {}".format(err)) from err

    def authenticate_client(self):
        """Get the service level client tokens needed before a user can log in."""

        operation = "client tokens"
        log.info("POST {}".format(operation))
        payload = {"code": self.client_code, "key": self.client_key}
        res = self._request(operation, "POST", self.url_client_tokens, json=payload)

        tokens = self._decode(operation, res, ClientTokens.model_validate)
        self.access_token = tokens.access_token
        self.refresh_token = tokens.refresh_token

    def perform_login(self):
        """Log the user in and return the authorization code from the redirect.

        The password is sent as a query parameter because that is the only
        form the identity service accepts.
        """

        operation = "login"
        log.info("GET {}".format(operation))
        params = {
            "takn": self.access_token,
            "email": self.email,
            "password": self.password,
            "redirect_uri": self.url_redirect,
        }
        # the code is in the Location header, so the redirect must not be followed
        res = self._request(
            operation, "GET", self.url_login, expected=requests.codes["found"], params=params, allow_redirects=False
        )

        location = res.headers.get("Location")
        if not location:
            raise ProtocolError(operation, "no Location header found in response")

        try:
            query = parse_qs(urlparse(location).query)
        except ValueError as err:
            raise ProtocolError(operation, "error parsing Location URL: {}".format(err)) from err

        code = query.get("code", [""])[0]
        if not code:
            raise ProtocolError(operation, "no code found in Location URL")

        log.debug("login redirect carried an authorization code")
        return code

    def exchange_code_for_token(self, code):
        """Swap the authorization code for the OAuth token set."""

        operation = "token exchange"
        log.info("POST {}".format(operation))
        params = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.url_redirect,
        }
        headers = {"Authorization": "{} {}".format(AUTH_SCHEME, self.access_token)}
        res = self._request(operation, "POST", self.url_token, params=params, json={}, headers=headers)

        tokens = self._decode(operation, res, OAuthTokens.model_validate)
        self.access_token = tokens.access_token
        self.oauth_refresh_token = tokens.refresh_token
        self.oauth_id_token = tokens.id_token
        self.oauth_token_type = tokens.token_type
        self.oauth_scope = tokens.scope
        self.oauth_expires_in = tokens.expires_in
        log.debug("oauth token expires in {} seconds".format(self.oauth_expires_in))

    def refresh_access_token(self):
        """Mint a fresh working access token from the stored client refresh token."""

        operation = "refresh access token"
        log.info("POST {}".format(operation))
        payload = {"refreshToken": self.refresh_token}
        res = self._request(operation, "POST", self.url_access_tokens, json=payload)

        token = self._decode(operation, res, AccessToken.model_validate)
        self.access_token = token.access_token

    def get_trips(self):
        """Refresh the access token, then return every trip of the account in server order."""

        self.refresh_access_token()

        operation = "trips"
        log.info("GET {} for account {}".format(operation, self.account_id))
        headers = {
            "Identity": self.oauth_id_token,
            "Authorization": "{} {}".format(AUTH_SCHEME, self.access_token),
            "Accept": ACCEPT,
        }
        res = self._request(operation, "GET", self.url_trips, headers=headers)

        self.trips = self._decode(operation, res, parse_trips)
        log.info("total trips {}".format(len(self.trips)))
        return self.trips

    def all_routes(self):
        """Return (start station, end station) pairs from the last fetched trips"""

        routes = [(x.start_station, x.end_station) for x in self.trips]
        return routes

    def total_duration(self):
        """Total minutes ridden across the last fetched trips"""

        return sum(x.duration for x in self.trips)
