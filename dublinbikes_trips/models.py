"""Response schemas for the Cyclocity identity and contracts APIs."""

import datetime
from typing import List

import pytz
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

TZS = "Europe/Dublin"
TZ = pytz.timezone(TZS)


class ClientTokens(BaseModel):
    """Service level tokens returned by the client_tokens endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")


class OAuthTokens(BaseModel):
    """Token set returned by the authorization code exchange."""

    access_token: str
    token_type: str
    refresh_token: str
    expires_in: int
    scope: str
    id_token: str


class AccessToken(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")


def parse_timestamp(st):
    """Parse an ISO-8601 trip timestamp into a Europe/Dublin aware datetime.

    Timestamps without an offset are taken to be Dublin local time.
    """

    if st.endswith("Z"):
        st = st[:-1] + "+00:00"
    dt = datetime.datetime.fromisoformat(st)
    if dt.tzinfo is None:
        return TZ.localize(dt)
    return dt.astimezone(TZ)


class Trip(BaseModel):
    """One completed rental as returned by the trips endpoint."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    movement_ref: str = Field(alias="movementRef")
    subscription_id: str = Field(alias="subscriptionId")
    subscription_ref: str = Field(alias="subscriptionRef")
    contract_name: str = Field(alias="contractName")
    account_id: str = Field(alias="accountId")
    status: str
    bike_number: int = Field(alias="bikeNumber")
    start_date_time: str = Field(alias="startDateTime")
    start_station: int = Field(alias="startStation")
    end_date_time: str = Field(alias="endDateTime")
    end_station: int = Field(alias="endStation")
    start_stand: int = Field(alias="startStand")
    end_stand: int = Field(alias="endStand")
    # minutes
    duration: int
    rewards_earned: int = Field(alias="rewardsEarned")
    rewards_spent: int = Field(alias="rewardsSpent")
    # minor currency units (cents)
    price: int
    discount: int
    reduced_price: int = Field(alias="reducedPrice")
    litigious: bool
    is_special: bool = Field(alias="isSpecial")
    is_rated: bool = Field(alias="isRated")

    @property
    def start_local(self):
        return parse_timestamp(self.start_date_time)

    @property
    def end_local(self):
        return parse_timestamp(self.end_date_time)

    @property
    def start_epoch(self):
        return int(self.start_local.timestamp())

    @property
    def end_epoch(self):
        return int(self.end_local.timestamp())

    def to_dict(self):
        """Return the trip keyed by its wire field names."""
        return self.model_dump(by_alias=True)


_trip_list = TypeAdapter(List[Trip])


def parse_trips(data):
    """Validate a decoded JSON value as a list of trips, keeping server order."""
    return _trip_list.validate_python(data)
