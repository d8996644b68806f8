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

from delta_sharing_client.delta_sharing import get_table_metadata, get_table_protocol
from delta_sharing_client.delta_sharing import get_table_version
from delta_sharing_client.errors import DeltaSharingError, ErrorKind
from delta_sharing_client.pagination import Pagination
from delta_sharing_client.protocol import (
    CdfOptions,
    DeltaSharingProfile,
    Schema,
    Share,
    Table,
    TableVersionQuery,
)
from delta_sharing_client.sharing_client import SharingClient
from delta_sharing_client.version import __version__


__all__ = [
    "CdfOptions",
    "DeltaSharingError",
    "DeltaSharingProfile",
    "ErrorKind",
    "Pagination",
    "SharingClient",
    "Share",
    "Schema",
    "Table",
    "TableVersionQuery",
    "get_table_metadata",
    "get_table_protocol",
    "get_table_version",
    "__version__",
]
