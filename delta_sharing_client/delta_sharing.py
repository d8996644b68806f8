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
from typing import Tuple, Union

from delta_sharing_client.protocol import (
    DeltaSharingProfile,
    Metadata,
    Protocol,
    Table,
    TableVersionQuery,
)
from delta_sharing_client.rest_client import DataSharingRestClient


def _parse_url(url: str) -> Tuple[str, str, str, str]:
    """
    :param url: a url under the format "<profile>#<share>.<schema>.<table>"
    :return: a tuple with parsed (profile, share, schema, table)
    """
    shape_index = url.rfind("#")
    if shape_index < 0:
        raise ValueError(f"Invalid 'url': {url}")
    profile = url[0:shape_index]
    fragments = url[shape_index + 1 :].split(".")
    if len(fragments) != 3:
        raise ValueError(f"Invalid 'url': {url}")
    share, schema, table = fragments
    if len(profile) == 0 or len(share) == 0 or len(schema) == 0 or len(table) == 0:
        raise ValueError(f"Invalid 'url': {url}")
    return (profile, share, schema, table)


def _rest_client_and_table(url: str) -> Tuple[DataSharingRestClient, Table]:
    profile_json, share, schema, table = _parse_url(url)
    profile = DeltaSharingProfile.read_from_file(profile_json)
    return DataSharingRestClient(profile), Table(name=table, share=share, schema=schema)


def get_table_version(
    url: str,
    starting_timestamp: Union[TableVersionQuery, str, None] = None,
) -> int:
    """
    Get the shared table version using the given url.

    :param url: a url under the format "<profile>#<share>.<schema>.<table>"
    :param starting_timestamp: a string in the format of YYYY-MM-DDThh:mm:ssZ. Get the version at or
      after the given timestamp. The latest table version will be returned if this is not specified.
    """
    rest_client, table = _rest_client_and_table(url)
    try:
        return rest_client.query_table_version(table, starting_timestamp).delta_table_version
    finally:
        rest_client.close()


def get_table_protocol(url: str) -> Protocol:
    """
    Get the shared table protocol using the given url.

    :param url: a url under the format "<profile>#<share>.<schema>.<table>"
    """
    rest_client, table = _rest_client_and_table(url)
    try:
        return rest_client.query_table_metadata(table).protocol
    finally:
        rest_client.close()


def get_table_metadata(url: str) -> Metadata:
    """
    Get the shared table metadata using the given url.

    :param url: a url under the format "<profile>#<share>.<schema>.<table>"
    """
    rest_client, table = _rest_client_and_table(url)
    try:
        return rest_client.query_table_metadata(table).metadata
    finally:
        rest_client.close()
