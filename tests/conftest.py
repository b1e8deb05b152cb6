import json

import pytest
import requests

from dublinbikes_trips import DublinBikesTrips

BASE = "https://api.cyclocity.fr"
URL_CLIENT_TOKENS = BASE + "/auth/environments/PRD/client_tokens"
URL_LOGIN = BASE + "/identities/users/login"
URL_TOKEN = BASE + "/identities/token"
URL_ACCESS_TOKENS = BASE + "/auth/access_tokens"
URL_TRIPS = BASE + "/contracts/dublin/accounts/acc-1/trips"

REASONS = {200: "OK", 302: "Found", 400: "Bad Request", 401: "Unauthorized", 500: "Internal Server Error"}


def make_response(status=200, body=None, text=None, headers=None):
    res = requests.Response()
    res.status_code = status
    res.reason = REASONS.get(status, "")
    if text is None:
        text = json.dumps(body) if body is not None else ""
    res._content = text.encode("utf-8")
    res.encoding = "utf-8"
    for k, v in (headers or {}).items():
        res.headers[k] = v
    return res


class FakeSession:
    """Stand-in for requests.Session returning queued responses in order."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    closed = False

    def queue(self, *responses):
        self.responses.extend(responses)

    def close(self):
        self.closed = True

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if not self.responses:
            raise AssertionError("unexpected request {} {}".format(method, url))
        res = self.responses.pop(0)
        if isinstance(res, Exception):
            raise res
        return res

    @property
    def urls(self):
        return [url for _, url, _ in self.calls]


def client_tokens_response(access="client-access", refresh="client-refresh"):
    return make_response(200, {"accessToken": access, "refreshToken": refresh})


def login_response(location="https://www.dublinbikes.ie/openid_connect_login?code=the-code&state=x"):
    headers = {"Location": location} if location is not None else {}
    return make_response(302, headers=headers)


def oauth_response(access="oauth-access", id_token="id-token"):
    return make_response(
        200,
        {
            "access_token": access,
            "token_type": "Bearer",
            "refresh_token": "oauth-refresh",
            "expires_in": 3600,
            "scope": "openid",
            "id_token": id_token,
        },
    )


def refresh_response(access="fresh-access"):
    return make_response(200, {"accessToken": access})


def auth_responses():
    return [client_tokens_response(), login_response(), oauth_response(), refresh_response()]


def trip_payload(n=1, **overrides):
    trip = {
        "id": "trip-{}".format(n),
        "movementRef": "mv-{}".format(n),
        "subscriptionId": "sub-1",
        "subscriptionRef": "ref-1",
        "contractName": "dublin",
        "accountId": "acc-1",
        "status": "CLOSED",
        "bikeNumber": 100 + n,
        "startDateTime": "2023-06-01T09:00:00Z",
        "startStation": 10 + n,
        "endDateTime": "2023-06-01T09:15:00Z",
        "endStation": 20 + n,
        "startStand": 3,
        "endStand": 7,
        "duration": 15,
        "rewardsEarned": 0,
        "rewardsSpent": 0,
        "price": 50,
        "discount": 0,
        "reducedPrice": 50,
        "litigious": False,
        "isSpecial": False,
        "isRated": True,
    }
    trip.update(overrides)
    return trip


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    session.queue(*auth_responses())
    c = DublinBikesTrips("acc-1", "rider@example.com", "p@ss word&", session=session, http_timeout=5)
    session.calls.clear()
    return c
