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
from dataclasses import dataclass
import json
import logging
from typing import Any, Callable, ClassVar, Dict, List, Optional, Sequence, TypeVar, Union
from urllib.parse import quote

import requests
from requests.exceptions import RequestException
from yarl import URL

from delta_sharing_client._internal_auth import (
    AuthCredentialProviderFactory,
    authorization_headers,
)
from delta_sharing_client.errors import DeltaSharingError
from delta_sharing_client.pagination import Pagination
from delta_sharing_client.protocol import (
    AddFile,
    CdfOptions,
    DeltaSharingProfile,
    ErrorResponse,
    FileAction,
    ListResponse,
    Metadata,
    Protocol,
    Schema,
    Share,
    Table,
    TableVersionQuery,
    _as_object,
)

T = TypeVar("T")

QUERY_PARAM_MAX_RESULTS = "maxResults"
QUERY_PARAM_PAGE_TOKEN = "pageToken"
QUERY_PARAM_STARTING_TIMESTAMP = "startingTimestamp"

CLIENT_ERROR_STATUSES = (400, 401, 403, 404)
SERVER_ERROR_STATUSES = (500,)

ListSharesResponse = ListResponse[Share]
ListSchemasResponse = ListResponse[Schema]
ListTablesResponse = ListResponse[Table]
ListAllTablesResponse = ListResponse[Table]


@dataclass(frozen=True)
class QueryTableMetadataResponse:
    delta_table_version: int
    protocol: Protocol
    metadata: Metadata


@dataclass(frozen=True)
class QueryTableVersionResponse:
    delta_table_version: int


@dataclass(frozen=True)
class ListFilesInTableResponse:
    delta_table_version: int
    protocol: Protocol
    metadata: Metadata
    add_files: Sequence[AddFile]


@dataclass(frozen=True)
class ListTableChangesResponse:
    protocol: Protocol
    metadata: Metadata
    actions: Sequence[FileAction]


def build_resource_url(endpoint: Union[str, URL], *segments: str) -> URL:
    """
    Append path segments to the endpoint. Every segment is percent-encoded as a whole, so a
    share, schema or table name can never add, remove or escape path segments. Empty, `.` and
    `..` segments are rejected since HTTP clients normalize them away.
    """
    try:
        base = endpoint if isinstance(endpoint, URL) else URL(endpoint)
        if not base.is_absolute():
            raise ValueError(f"'{endpoint}' is not an absolute URL")
        encoded = []
        for segment in segments:
            if not isinstance(segment, str) or segment in ("", ".", ".."):
                raise ValueError(f"Invalid path segment {segment!r}")
            encoded.append(quote(segment, safe=""))
        url = base.joinpath(*encoded, encoded=True)
    except (TypeError, ValueError) as e:
        logging.error(f"Failed to construct URL: {e}")
        raise DeltaSharingError.internal(f"Failed to construct URL: {e}") from e
    logging.debug(f"Endpoint URL constructed: {url}")
    return url


def with_pagination(url: URL, pagination: Pagination) -> URL:
    params: Dict[str, str] = {}
    if pagination.max_results is not None:
        params[QUERY_PARAM_MAX_RESULTS] = str(pagination.max_results)
    if pagination.page_token is not None:
        params[QUERY_PARAM_PAGE_TOKEN] = pagination.page_token
    if not params:
        return url
    return url.update_query(params)


def with_version_query(url: URL, version_query: TableVersionQuery) -> URL:
    starting_timestamp = version_query.to_timestamp()
    if starting_timestamp is None:
        return url
    return url.update_query({QUERY_PARAM_STARTING_TIMESTAMP: starting_timestamp})


def classify_response(response: requests.Response, parse: Callable[[requests.Response], T]) -> T:
    """
    Turn a server response into the parsed payload or a DeltaSharingError.

    * 200: the payload produced by ``parse``. A payload that ``parse`` rejects is a
      PARSE_RESPONSE error.
    * 400, 401, 403, 404: a CLIENT_ERROR carrying the status and the server's error code.
    * 500: a SERVER_ERROR carrying the status and the server's error code.
    * anything else: an INTERNAL error. The body is not read.

    Error bodies must be ``{"errorCode": ..., "message": ...}``, otherwise the result is a
    PARSE_RESPONSE error.
    """
    status_code = response.status_code
    logging.debug(f"Server responded with status {status_code}")

    if status_code == 200:
        result = _parse(response, parse)
        logging.debug("Response parsed")
        return result
    elif status_code in CLIENT_ERROR_STATUSES:
        error = _parse(response, lambda r: ErrorResponse.from_json(r.text))
        raise DeltaSharingError.client(status_code, error.error_code, error.message)
    elif status_code in SERVER_ERROR_STATUSES:
        error = _parse(response, lambda r: ErrorResponse.from_json(r.text))
        raise DeltaSharingError.server(status_code, error.error_code, error.message)
    else:
        logging.warning(f"Unexpected HTTP status {status_code} from {response.url}")
        raise DeltaSharingError.internal(f"unknown server response (HTTP {status_code})")


def _parse(response: requests.Response, parse: Callable[[requests.Response], T]) -> T:
    try:
        return parse(response)
    except (LookupError, TypeError, ValueError) as e:
        logging.error(f"Failed to parse server response: {e!r}")
        raise DeltaSharingError.parse_response(f"Failed to parse server response: {e}") from e


def _response_lines(response: requests.Response) -> List[str]:
    return [line for line in response.text.splitlines() if line.strip()]


def _parse_protocol_and_metadata(lines: List[str]):
    if len(lines) < 2:
        raise ValueError(f"Expected protocol and metadata lines but got {len(lines)} lines")
    protocol = Protocol.from_json(_as_object(lines[0])["protocol"])
    metadata = Metadata.from_json(_as_object(lines[1])["metaData"])
    return protocol, metadata


def _client_user_agent() -> str:
    try:
        from delta_sharing_client.version import __version__
        import platform

        return (
            f"Delta-Sharing-Python-Client/{__version__}"
            + f" requests/{requests.__version__}"
            + f" Python/{platform.python_version()}"
            + f" System/{platform.platform()}"
        )
    except Exception as e:
        logging.warning(
            f"Unable to load version information for Delta Sharing because of error {e}"
        )
        return "Delta-Sharing-Python-Client/<unknown>"


class DataSharingRestClient:
    """
    One method per Delta Sharing endpoint. Each call sends exactly one request; listing
    methods return a single page.

    :param profile: the profile of the sharing server.
    :param session: an optional requests.Session to send requests with, e.g. to configure
      proxies or TLS. The client owns no other state shared between calls.
    :param timeout: the timeout in seconds passed to every request.
    """

    USER_AGENT: ClassVar[str] = _client_user_agent()
    DELTA_TABLE_VERSION_HEADER = "delta-table-version"

    def __init__(
        self,
        profile: DeltaSharingProfile,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self._profile = profile
        self._endpoint = URL(profile.endpoint)
        self._timeout = timeout
        self.__auth_session(profile, session)

        self._session.headers.update(
            {
                "User-Agent": DataSharingRestClient.USER_AGENT,
            }
        )

    def __auth_session(self, profile: DeltaSharingProfile, session: Optional[requests.Session]):
        self._session = session if session is not None else requests.Session()
        self._auth_credential_provider = (
            AuthCredentialProviderFactory.create_auth_credential_provider(profile))
        if self._endpoint.host == "localhost":
            self._session.verify = False

    def get_session(self) -> requests.Session:
        return self._session

    def list_shares(
        self,
        pagination: Optional[Pagination] = None,
        *,
        max_results: Optional[int] = None,
        page_token: Optional[str] = None,
    ) -> ListSharesResponse:
        pagination = _resolve_pagination(pagination, max_results, page_token)
        url = with_pagination(build_resource_url(self._endpoint, "shares"), pagination)
        return self._get_internal(url, lambda r: ListResponse.from_json(r.text, Share.from_json))

    def get_share(self, name: str) -> Share:
        url = build_resource_url(self._endpoint, "shares", name)
        return self._get_internal(url, lambda r: Share.from_json(_as_object(r.text)["share"]))

    def list_schemas(
        self,
        share: Share,
        pagination: Optional[Pagination] = None,
        *,
        max_results: Optional[int] = None,
        page_token: Optional[str] = None,
    ) -> ListSchemasResponse:
        pagination = _resolve_pagination(pagination, max_results, page_token)
        url = with_pagination(
            build_resource_url(self._endpoint, "shares", share.name, "schemas"), pagination
        )
        return self._get_internal(url, lambda r: ListResponse.from_json(r.text, Schema.from_json))

    def list_tables(
        self,
        schema: Schema,
        pagination: Optional[Pagination] = None,
        *,
        max_results: Optional[int] = None,
        page_token: Optional[str] = None,
    ) -> ListTablesResponse:
        pagination = _resolve_pagination(pagination, max_results, page_token)
        url = with_pagination(
            build_resource_url(
                self._endpoint, "shares", schema.share, "schemas", schema.name, "tables"
            ),
            pagination,
        )
        return self._get_internal(url, lambda r: ListResponse.from_json(r.text, Table.from_json))

    def list_all_tables(
        self,
        share: Share,
        pagination: Optional[Pagination] = None,
        *,
        max_results: Optional[int] = None,
        page_token: Optional[str] = None,
    ) -> ListAllTablesResponse:
        pagination = _resolve_pagination(pagination, max_results, page_token)
        url = build_resource_url(self._endpoint, "shares", share.name, "schemas", "all-tables")
        url = with_pagination(url, pagination)
        return self._get_internal(url, lambda r: ListResponse.from_json(r.text, Table.from_json))

    def query_table_version(
        self,
        table: Table,
        version_query: Union[TableVersionQuery, str, None] = None,
    ) -> QueryTableVersionResponse:
        if version_query is None:
            version_query = TableVersionQuery.latest()
        elif isinstance(version_query, str):
            version_query = TableVersionQuery.parse(version_query)
        url = with_version_query(self._table_url(table, "version"), version_query)
        return self._get_internal(
            url,
            lambda r: QueryTableVersionResponse(delta_table_version=self._table_version(r)),
        )

    def query_table_metadata(self, table: Table) -> QueryTableMetadataResponse:
        def parse(response: requests.Response) -> QueryTableMetadataResponse:
            version = self._table_version(response)
            protocol, metadata = _parse_protocol_and_metadata(_response_lines(response))
            return QueryTableMetadataResponse(
                delta_table_version=version,
                protocol=protocol,
                metadata=metadata,
            )

        return self._get_internal(self._table_url(table, "metadata"), parse)

    def list_files_in_table(
        self,
        table: Table,
        *,
        predicateHints: Optional[Sequence[str]] = None,
        jsonPredicateHints: Optional[str] = None,
        limitHint: Optional[int] = None,
        version: Optional[int] = None,
        timestamp: Optional[str] = None,
        startingVersion: Optional[int] = None,
        endingVersion: Optional[int] = None,
    ) -> ListFilesInTableResponse:
        data: Dict[str, Any] = {}
        if predicateHints is not None:
            data["predicateHints"] = list(predicateHints)
        if jsonPredicateHints is not None:
            data["jsonPredicateHints"] = jsonPredicateHints
        if limitHint is not None:
            data["limitHint"] = limitHint
        if version is not None:
            data["version"] = version
        if timestamp is not None:
            data["timestamp"] = timestamp
        if startingVersion is not None:
            data["startingVersion"] = startingVersion
        if endingVersion is not None:
            data["endingVersion"] = endingVersion

        def parse(response: requests.Response) -> ListFilesInTableResponse:
            version = self._table_version(response)
            lines = _response_lines(response)
            protocol, metadata = _parse_protocol_and_metadata(lines)
            return ListFilesInTableResponse(
                delta_table_version=version,
                protocol=protocol,
                metadata=metadata,
                add_files=[AddFile.from_json(_as_object(line)["file"]) for line in lines[2:]],
            )

        return self._post_internal(self._table_url(table, "query"), data, parse)

    def list_table_changes(self, table: Table, cdfOptions: CdfOptions) -> ListTableChangesResponse:
        # We do not validate the CDF options here since the server will perform validations anyways.
        params: Dict[str, str] = {}
        if cdfOptions.starting_version is not None:
            params["startingVersion"] = str(cdfOptions.starting_version)
        if cdfOptions.starting_timestamp is not None:
            params["startingTimestamp"] = cdfOptions.starting_timestamp
        if cdfOptions.ending_version is not None:
            params["endingVersion"] = str(cdfOptions.ending_version)
        if cdfOptions.ending_timestamp is not None:
            params["endingTimestamp"] = cdfOptions.ending_timestamp
        if cdfOptions.include_historical_metadata is not None:
            params["includeHistoricalMetadata"] = str(
                cdfOptions.include_historical_metadata).lower()
        url = self._table_url(table, "changes")
        if params:
            url = url.update_query(params)

        def parse(response: requests.Response) -> ListTableChangesResponse:
            lines = _response_lines(response)
            protocol, metadata = _parse_protocol_and_metadata(lines)
            actions: List[FileAction] = []
            for line in lines[2:]:
                action = FileAction.from_json(json.loads(line))
                if action is not None:
                    actions.append(action)
            return ListTableChangesResponse(protocol=protocol, metadata=metadata, actions=actions)

        return self._get_internal(url, parse)

    def close(self):
        self._session.close()

    def _table_url(self, table: Table, resource: str) -> URL:
        return build_resource_url(
            self._endpoint,
            "shares", table.share, "schemas", table.schema, "tables", table.name, resource,
        )

    def _table_version(self, response: requests.Response) -> int:
        # it's a bug in the server if it doesn't return delta-table-version in the header
        value = response.headers.get(DataSharingRestClient.DELTA_TABLE_VERSION_HEADER)
        if value is None:
            raise LookupError("Missing delta-table-version header")
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise ValueError(f"Invalid delta-table-version header: {value!r}")
        return int(value)

    def _get_internal(self, url: URL, parse: Callable[[requests.Response], T]) -> T:
        return self._request_internal(request=self._session.get, url=url, parse=parse)

    def _post_internal(
        self,
        url: URL,
        data: Optional[Dict[str, Any]],
        parse: Callable[[requests.Response], T],
    ) -> T:
        return self._request_internal(request=self._session.post, url=url, parse=parse, json=data)

    def _request_internal(
        self,
        request: Callable[..., requests.Response],
        url: URL,
        parse: Callable[[requests.Response], T],
        **kwargs,
    ) -> T:
        headers = authorization_headers(self._auth_credential_provider)
        logging.debug(f"Prepared request to {url}")
        try:
            response = request(str(url), headers=headers, timeout=self._timeout, **kwargs)
        except RequestException as e:
            logging.error(f"Request to {url} failed: {e}")
            raise DeltaSharingError.request(f"Request to {url} failed: {e}") from e
        try:
            return classify_response(response, parse)
        except RequestException as e:
            logging.error(f"Reading the response from {url} failed: {e}")
            raise DeltaSharingError.request(f"Reading the response from {url} failed: {e}") from e
        finally:
            response.close()


def _resolve_pagination(
    pagination: Optional[Pagination],
    max_results: Optional[int],
    page_token: Optional[str],
) -> Pagination:
    if pagination is not None:
        if max_results is not None or page_token is not None:
            raise DeltaSharingError.internal(
                "Pass either a pagination or max_results/page_token, not both"
            )
        return pagination
    if page_token is not None:
        return Pagination.from_token(max_results, page_token)
    return Pagination.from_start(max_results)
