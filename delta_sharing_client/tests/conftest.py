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
import json
import os
from typing import Any, Dict, Optional, Union
from unittest.mock import MagicMock

import pytest
import requests
from requests.models import Response

from delta_sharing_client.protocol import DeltaSharingProfile
from delta_sharing_client.rest_client import DataSharingRestClient
from delta_sharing_client.sharing_client import SharingClient


ENABLE_INTEGRATION = len(os.environ.get("DELTA_SHARING_PROFILE", "")) > 0
SKIP_MESSAGE = "The integration tests are disabled."

ENDPOINT = "https://localhost:12345/delta-sharing"


def make_response(
    status_code: int,
    body: Union[bytes, str, Dict[str, Any], list, None] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    if body is None:
        body = b""
    elif isinstance(body, (dict, list)):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode("utf-8")
    response = Response()
    response.status_code = status_code
    response._content = body
    response._content_consumed = True
    response.encoding = "utf-8"
    response.headers.update(headers or {})
    response.url = ENDPOINT
    return response


def ndjson(*lines: Dict[str, Any]) -> str:
    return "\n".join(json.dumps(line) for line in lines)


@pytest.fixture
def profile_path() -> str:
    return os.path.join(os.path.dirname(__file__), "test_profile.json")


@pytest.fixture
def profile(profile_path) -> DeltaSharingProfile:
    return DeltaSharingProfile.read_from_file(profile_path)


@pytest.fixture
def session() -> requests.Session:
    session = requests.Session()
    session.get = MagicMock()
    session.post = MagicMock()
    return session


@pytest.fixture
def rest_client(profile, session) -> DataSharingRestClient:
    return DataSharingRestClient(profile, session=session)


@pytest.fixture
def sharing_client(profile, session) -> SharingClient:
    return SharingClient(profile, session=session)


@pytest.fixture
def live_sharing_client() -> SharingClient:
    return SharingClient(os.environ["DELTA_SHARING_PROFILE"])
