#
# Copyright (C) 2021 The Delta Lake Project Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
from dataclasses import dataclass, field
from datetime import datetime, timezone
from json import loads
from pathlib import Path
from typing import Any, Callable, ClassVar, Dict, Generic, IO, Optional, Sequence, TypeVar, Union

import fsspec
from yarl import URL

from delta_sharing_client.errors import DeltaSharingError

T = TypeVar("T")

REDACTED = "********"


def _parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp such as ``2021-11-12T00:12:29.0Z``. A timestamp without an
    offset is taken to be in UTC.
    """
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    timestamp = datetime.fromisoformat(value)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def _as_object(json) -> Dict[str, Any]:
    if isinstance(json, (str, bytes, bytearray)):
        json = loads(json)
    if not isinstance(json, dict):
        raise ValueError(f"Expected a JSON object but got {type(json).__name__}")
    return json


@dataclass(frozen=True, repr=False)
class DeltaSharingProfile:
    CURRENT: ClassVar[int] = 1
    BEARER_TOKEN: ClassVar[str] = "bearer_token"

    share_credentials_version: int
    endpoint: str
    bearer_token: Optional[str] = None
    expiration_time: Optional[datetime] = None
    type: str = "bearer_token"

    def __post_init__(self):
        if self.share_credentials_version != DeltaSharingProfile.CURRENT:
            raise DeltaSharingError.profile(
                f"Unsupported share credentials version: {self.share_credentials_version}"
            )
        try:
            endpoint = URL(self.endpoint)
        except (TypeError, ValueError) as e:
            raise DeltaSharingError.profile(
                f"Failed to parse endpoint URL in profile: {e}"
            ) from e
        if not endpoint.is_absolute() or endpoint.scheme not in ("http", "https"):
            raise DeltaSharingError.profile(
                f"Failed to parse endpoint URL in profile: '{self.endpoint}' is not an "
                "absolute http(s) URL"
            )
        if self.type != DeltaSharingProfile.BEARER_TOKEN:
            raise DeltaSharingError.profile(f"Unsupported profile type: {self.type}")
        if not self.bearer_token:
            raise DeltaSharingError.profile("Bearer token is missing in profile file")
        if isinstance(self.expiration_time, str):
            try:
                expiration_time = _parse_timestamp(self.expiration_time)
            except ValueError as e:
                raise DeltaSharingError.profile(
                    f"Failed to parse expiration time in profile: {e}"
                ) from e
            object.__setattr__(self, "expiration_time", expiration_time)
        elif self.expiration_time is not None and not isinstance(self.expiration_time, datetime):
            raise DeltaSharingError.profile(
                "Failed to parse expiration time in profile: "
                f"expected a timestamp string, got {self.expiration_time!r}"
            )

    def __repr__(self) -> str:
        return (
            f"DeltaSharingProfile(share_credentials_version={self.share_credentials_version}, "
            f"endpoint={self.endpoint!r}, bearer_token={REDACTED!r}, "
            f"expiration_time={self.expiration_time!r}, type={self.type!r})"
        )

    @staticmethod
    def read_from_file(profile: Union[str, IO, Path]) -> "DeltaSharingProfile":
        try:
            if isinstance(profile, str):
                infile = fsspec.open(profile).open()
            elif isinstance(profile, Path):
                infile = fsspec.open(profile.as_uri()).open()
            else:
                infile = profile
        except (OSError, ValueError) as e:
            raise DeltaSharingError.profile(
                f"Failed to open profile file at {profile}: {e}"
            ) from e
        try:
            content = infile.read()
        except OSError as e:
            raise DeltaSharingError.profile(
                f"Failed to open profile file at {profile}: {e}"
            ) from e
        finally:
            infile.close()
        return DeltaSharingProfile._from_json(content, f" at {profile}")

    @staticmethod
    def from_json(json) -> "DeltaSharingProfile":
        return DeltaSharingProfile._from_json(json, "")

    @staticmethod
    def _from_json(json, location: str) -> "DeltaSharingProfile":
        try:
            json = _as_object(json)
            share_credentials_version = int(json["shareCredentialsVersion"])
            endpoint = json["endpoint"]
            if not isinstance(endpoint, str):
                raise ValueError("'endpoint' must be a string")
        except KeyError as e:
            raise DeltaSharingError.profile(
                f"Failed to parse profile file{location}: missing field {e}"
            ) from e
        except (TypeError, ValueError) as e:
            raise DeltaSharingError.profile(
                f"Failed to parse profile file{location}: {e}"
            ) from e

        if endpoint.endswith("/"):
            endpoint = endpoint[:-1]

        return DeltaSharingProfile(
            share_credentials_version=share_credentials_version,
            endpoint=endpoint,
            bearer_token=json.get("bearerToken"),
            expiration_time=json.get("expirationTime"),
        )


@dataclass(frozen=True)
class Share:
    name: str
    id: Optional[str] = None

    @staticmethod
    def from_json(json) -> "Share":
        json = _as_object(json)
        return Share(name=json["name"], id=json.get("id"))


@dataclass(frozen=True)
class Schema:
    name: str
    share: str

    @staticmethod
    def from_json(json) -> "Schema":
        json = _as_object(json)
        return Schema(name=json["name"], share=json["share"])


@dataclass(frozen=True)
class Table:
    name: str
    share: str
    schema: str
    share_id: Optional[str] = None
    id: Optional[str] = None

    @staticmethod
    def from_json(json) -> "Table":
        json = _as_object(json)
        return Table(
            name=json["name"],
            share=json["share"],
            schema=json["schema"],
            share_id=json.get("shareId"),
            id=json.get("id"),
        )


@dataclass(frozen=True)
class ListResponse(Generic[T]):
    """One page of a listing: the items in server order and the token of the next page."""

    items: Sequence[T]
    next_page_token: Optional[str] = None

    @staticmethod
    def from_json(json, item_from_json: Callable[[Any], T]) -> "ListResponse[T]":
        json = _as_object(json)
        items = json.get("items", [])
        if not isinstance(items, list):
            raise ValueError("'items' must be a list")
        next_page_token = json.get("nextPageToken", None)
        if next_page_token is not None and not isinstance(next_page_token, str):
            raise ValueError("'nextPageToken' must be a string")
        return ListResponse(
            items=[item_from_json(item) for item in items],
            next_page_token=next_page_token,
        )


@dataclass(frozen=True)
class ErrorResponse:
    error_code: str
    message: str

    @staticmethod
    def from_json(json) -> "ErrorResponse":
        json = _as_object(json)
        error_code = json["errorCode"]
        message = json["message"]
        if not isinstance(error_code, str) or not isinstance(message, str):
            raise ValueError("'errorCode' and 'message' must be strings")
        return ErrorResponse(error_code=error_code, message=message)


@dataclass(frozen=True)
class Protocol:
    min_reader_version: int

    @staticmethod
    def from_json(json) -> "Protocol":
        json = _as_object(json)
        return Protocol(min_reader_version=int(json["minReaderVersion"]))


@dataclass(frozen=True)
class Format:
    provider: str = "parquet"
    options: Dict[str, str] = field(default_factory=dict)

    @staticmethod
    def from_json(json) -> "Format":
        json = _as_object(json)
        return Format(provider=json.get("provider", "parquet"), options=json.get("options", {}))


@dataclass(frozen=True)
class Metadata:
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    format: Format = field(default_factory=Format)
    schema_string: Optional[str] = None
    configuration: Dict[str, str] = field(default_factory=dict)
    partition_columns: Sequence[str] = field(default_factory=list)
    version: Optional[int] = None
    size: Optional[int] = None
    num_files: Optional[int] = None

    @staticmethod
    def from_json(json) -> "Metadata":
        json = _as_object(json)
        return Metadata(
            id=json["id"],
            name=json.get("name", None),
            description=json.get("description", None),
            format=Format.from_json(json["format"]),
            schema_string=json["schemaString"],
            configuration=json.get("configuration", {}),
            partition_columns=json["partitionColumns"],
            version=json.get("version", None),
            size=json.get("size", None),
            num_files=json.get("numFiles", None),
        )


@dataclass(frozen=True)
class FileAction:
    url: str
    id: str
    partition_values: Dict[str, str]
    size: int
    timestamp: Optional[int] = None
    version: Optional[int] = None

    @staticmethod
    def from_json(action_json) -> Optional["FileAction"]:
        action_json = _as_object(action_json)
        if "add" in action_json:
            return AddFile.from_json(action_json["add"])
        elif "cdf" in action_json:
            return AddCdcFile.from_json(action_json["cdf"])
        elif "remove" in action_json:
            return RemoveFile.from_json(action_json["remove"])
        else:
            return None


@dataclass(frozen=True)
class AddFile(FileAction):
    stats: Optional[str] = None
    expiration_timestamp: Optional[int] = None

    @staticmethod
    def from_json(json) -> "AddFile":
        json = _as_object(json)
        return AddFile(
            url=json["url"],
            id=json["id"],
            partition_values=json["partitionValues"],
            size=int(json["size"]),
            stats=json.get("stats", None),
            timestamp=json.get("timestamp", None),
            version=json.get("version", None),
            expiration_timestamp=json.get("expirationTimestamp", None),
        )


@dataclass(frozen=True)
class AddCdcFile(FileAction):
    @staticmethod
    def from_json(json) -> "AddCdcFile":
        json = _as_object(json)
        return AddCdcFile(
            url=json["url"],
            id=json["id"],
            partition_values=json["partitionValues"],
            size=int(json["size"]),
            timestamp=json["timestamp"],
            version=json["version"],
        )


@dataclass(frozen=True)
class RemoveFile(FileAction):
    @staticmethod
    def from_json(json) -> "RemoveFile":
        json = _as_object(json)
        return RemoveFile(
            url=json["url"],
            id=json["id"],
            partition_values=json["partitionValues"],
            size=int(json["size"]),
            timestamp=json.get("timestamp", None),
            version=json.get("version", None),
        )


@dataclass(frozen=True)
class CdfOptions:
    starting_version: Optional[int] = None
    ending_version: Optional[int] = None
    starting_timestamp: Optional[str] = None
    ending_timestamp: Optional[str] = None
    include_historical_metadata: Optional[bool] = None


@dataclass(frozen=True)
class TableVersionQuery:
    """
    Which version of a table to ask for: the latest one, or the first version committed at
    or after ``timestamp``.
    """

    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is not None and self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=timezone.utc))

    @staticmethod
    def latest() -> "TableVersionQuery":
        return TableVersionQuery()

    @staticmethod
    def at(timestamp: datetime) -> "TableVersionQuery":
        return TableVersionQuery(timestamp=timestamp)

    @staticmethod
    def parse(value: str) -> "TableVersionQuery":
        if value.lower() == "latest":
            return TableVersionQuery.latest()
        try:
            return TableVersionQuery.at(_parse_timestamp(value))
        except ValueError as e:
            raise DeltaSharingError.request(
                "Cannot parse TableVersionQuery. The string must be either `latest` or a "
                "timestamp in ISO8601 format like `2021-08-01T00:00:00Z`."
            ) from e

    def is_latest(self) -> bool:
        return self.timestamp is None

    def to_timestamp(self) -> Optional[str]:
        if self.timestamp is None:
            return None
        return self.timestamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
