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
from itertools import chain
import logging
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence, TextIO, Union

import requests

from delta_sharing_client.errors import DeltaSharingError
from delta_sharing_client.pagination import DEFAULT_MAX_PAGES, paginate
from delta_sharing_client.protocol import (
    CdfOptions,
    DeltaSharingProfile,
    Schema,
    Share,
    Table,
    TableVersionQuery,
)
from delta_sharing_client.rest_client import (
    DataSharingRestClient,
    ListFilesInTableResponse,
    ListTableChangesResponse,
    QueryTableMetadataResponse,
)


class SharingClient:
    """
    A Delta Sharing client to query shares/schemas/tables from a Delta Sharing Server.

    Listing methods fetch every page and return all items, or raise on the first failing
    page without returning anything. Single-page listings are available through
    :attr:`rest_client`.

    :param profile: The path to the profile file or a DeltaSharingProfile object.
    :param session: An optional requests.Session object to use for HTTP requests.
                    You can use this to customize proxy settings, authentication, etc.
    :param timeout: The timeout in seconds of every request.
    :param max_pages: The most pages a single listing may fetch. ``None`` means no limit.
    :param max_pagination_seconds: The most seconds a single listing may take.
                                   ``None`` means no limit.
    """
    def __init__(
        self,
        profile: Union[str, BinaryIO, TextIO, Path, DeltaSharingProfile],
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        max_pages: Optional[int] = DEFAULT_MAX_PAGES,
        max_pagination_seconds: Optional[float] = None,
    ):
        if not isinstance(profile, DeltaSharingProfile):
            profile = DeltaSharingProfile.read_from_file(profile)
        self._profile = profile
        self._rest_client = DataSharingRestClient(profile, session=session, timeout=timeout)
        self._max_pages = max_pages
        self._max_pagination_seconds = max_pagination_seconds

    @property
    def rest_client(self) -> DataSharingRestClient:
        """
        Get the underlying DataSharingRestClient used by this SharingClient.

        :return: The DataSharingRestClient instance.
        """
        return self._rest_client

    def _paginate(self, fetch_page, max_results: Optional[int] = None) -> List:
        return paginate(
            fetch_page,
            max_results=max_results,
            max_pages=self._max_pages,
            max_duration=self._max_pagination_seconds,
        )

    def list_shares(self, max_results: Optional[int] = None) -> Sequence[Share]:
        """
        List shares that can be accessed by you in a Delta Sharing Server.

        :param max_results: the page size to request. The server default is used if not set.
        :return: the shares that can be accessed.
        """
        return self._paginate(lambda page: self._rest_client.list_shares(page), max_results)

    def get_share(self, name: str) -> Optional[Share]:
        """
        Get a share by name.

        :param name: the name of the share.
        :return: the share, or None if the server does not know it.
        """
        try:
            return self._rest_client.get_share(name)
        except DeltaSharingError as e:
            if e.is_not_found():
                logging.debug(f"Share {name} not found: {e}")
                return None
            raise

    def list_schemas(self, share: Share, max_results: Optional[int] = None) -> Sequence[Schema]:
        """
        List schemas in a share that can be accessed by you in a Delta Sharing Server.

        :param share: the share to list.
        :return: the schemas in a share.
        """
        return self._paginate(
            lambda page: self._rest_client.list_schemas(share, page), max_results
        )

    def list_tables(self, schema: Schema, max_results: Optional[int] = None) -> Sequence[Table]:
        """
        List tables in a schema that can be accessed by you in a Delta Sharing Server.

        :param schema: the schema to list.
        :return: the tables in a schema.
        """
        return self._paginate(
            lambda page: self._rest_client.list_tables(schema, page), max_results
        )

    def list_all_tables_in_share(
        self, share: Share, max_results: Optional[int] = None
    ) -> Sequence[Table]:
        """
        List all tables in a share, across its schemas, with the share-level listing.

        :param share: the share to list.
        :return: the tables in the share.
        """
        return self._paginate(
            lambda page: self._rest_client.list_all_tables(share, page), max_results
        )

    def list_all_tables(self) -> Sequence[Table]:
        """
        List all tables that can be accessed by you in a Delta Sharing Server.

        :return: all tables that can be accessed.
        """
        shares = self.list_shares()
        try:
            return list(chain(*(self.list_all_tables_in_share(share) for share in shares)))
        except DeltaSharingError as e:
            if e.is_not_found():
                # The server doesn't support all-tables API. Fallback to the old APIs instead.
                logging.info("The server does not support listing all tables in a share")
                schemas = chain(*(self.list_schemas(share) for share in shares))
                return list(chain(*(self.list_tables(schema) for schema in schemas)))
            else:
                raise e

    def get_table_version(
        self,
        table: Table,
        version_query: Union[TableVersionQuery, str, None] = None,
    ) -> int:
        """
        Get the version of a table.

        :param table: the table.
        :param version_query: ``TableVersionQuery.latest()`` (the default) or a timestamp
          query; a string is parsed with ``TableVersionQuery.parse``.
        :return: the table version read from the ``Delta-Table-Version`` response header.
        """
        return self._rest_client.query_table_version(table, version_query).delta_table_version

    def get_table_metadata(self, table: Table) -> QueryTableMetadataResponse:
        return self._rest_client.query_table_metadata(table)

    def get_table_data(
        self,
        table: Table,
        *,
        predicate_hints: Optional[Sequence[str]] = None,
        json_predicate_hints: Optional[str] = None,
        limit_hint: Optional[int] = None,
        version: Optional[int] = None,
        timestamp: Optional[str] = None,
        starting_version: Optional[int] = None,
        ending_version: Optional[int] = None,
    ) -> ListFilesInTableResponse:
        """
        Get the files of a table snapshot, or of a version range.

        The hints let the server skip files but do not guarantee the files are filtered.
        """
        return self._rest_client.list_files_in_table(
            table,
            predicateHints=predicate_hints,
            jsonPredicateHints=json_predicate_hints,
            limitHint=limit_hint,
            version=version,
            timestamp=timestamp,
            startingVersion=starting_version,
            endingVersion=ending_version,
        )

    def get_table_changes(
        self, table: Table, cdf_options: CdfOptions
    ) -> ListTableChangesResponse:
        return self._rest_client.list_table_changes(table, cdf_options)

    def close(self):
        self._rest_client.close()
