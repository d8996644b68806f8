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
from datetime import datetime, timezone

import pytest
from yarl import URL

from delta_sharing_client.errors import DeltaSharingError, ErrorKind
from delta_sharing_client.protocol import CdfOptions, Schema, Share, Table, TableVersionQuery
from delta_sharing_client.sharing_client import SharingClient
from delta_sharing_client.tests.conftest import (
    ENABLE_INTEGRATION,
    ENDPOINT,
    SKIP_MESSAGE,
    make_response,
    ndjson,
)


def _requested_urls(mock):
    return [c.args[0] for c in mock.call_args_list]


def test_sharing_client_from_profile_path(profile_path):
    client = SharingClient(profile_path)
    assert client.rest_client._profile.endpoint == ENDPOINT


def test_list_shares_aggregates_pages(sharing_client: SharingClient, session):
    session.get.side_effect = [
        make_response(200, {"items": [{"name": "A"}, {"name": "B"}], "nextPageToken": "p2"}),
        make_response(200, {"items": [{"name": "C"}], "nextPageToken": ""}),
    ]
    assert sharing_client.list_shares() == [Share("A"), Share("B"), Share("C")]
    assert _requested_urls(session.get) == [
        f"{ENDPOINT}/shares",
        f"{ENDPOINT}/shares?pageToken=p2",
    ]


def test_list_shares_with_page_size(sharing_client: SharingClient, session):
    session.get.side_effect = [
        make_response(200, {"items": [{"name": "A"}], "nextPageToken": "p2"}),
        make_response(200, {"items": [{"name": "B"}]}),
    ]
    assert sharing_client.list_shares(max_results=1) == [Share("A"), Share("B")]
    assert _requested_urls(session.get) == [
        f"{ENDPOINT}/shares?maxResults=1",
        f"{ENDPOINT}/shares?maxResults=1&pageToken=p2",
    ]


def test_list_shares_empty(sharing_client: SharingClient, session):
    session.get.return_value = make_response(200, {"items": []})
    assert sharing_client.list_shares() == []
    assert session.get.call_count == 1


def test_list_shares_fails_on_any_page(sharing_client: SharingClient, session):
    session.get.side_effect = [
        make_response(200, {"items": [{"name": "A"}], "nextPageToken": "p2"}),
        make_response(500, {"errorCode": "INTERNAL_ERROR", "message": "boom"}),
    ]
    with pytest.raises(DeltaSharingError) as e:
        sharing_client.list_shares()
    assert e.value.kind == ErrorKind.SERVER_ERROR
    assert session.get.call_count == 2


def test_list_shares_page_limit(profile, session):
    client = SharingClient(profile, session=session, max_pages=3)
    session.get.side_effect = lambda url, **kwargs: make_response(
        200, {"items": [{"name": "A"}], "nextPageToken": "again"}
    )
    with pytest.raises(DeltaSharingError) as e:
        client.list_shares()
    assert e.value.kind == ErrorKind.INTERNAL
    assert session.get.call_count == 3


def test_get_share(sharing_client: SharingClient, session):
    session.get.return_value = make_response(200, {"share": {"name": "share1"}})
    assert sharing_client.get_share("share1") == Share("share1")


def test_get_share_not_found(sharing_client: SharingClient, session):
    session.get.return_value = make_response(
        404, {"errorCode": "SHARE_NOT_FOUND", "message": "m"}
    )
    assert sharing_client.get_share("missing") is None


@pytest.mark.parametrize("status_code", [400, 401, 403, 500])
def test_get_share_other_errors(sharing_client: SharingClient, session, status_code):
    session.get.return_value = make_response(
        status_code, {"errorCode": "SOME_ERROR", "message": "m"}
    )
    with pytest.raises(DeltaSharingError) as e:
        sharing_client.get_share("share1")
    assert e.value.status_code == status_code


def test_list_schemas_and_tables(sharing_client: SharingClient, session):
    session.get.side_effect = [
        make_response(200, {"items": [{"name": "default", "share": "share1"}]}),
        make_response(
            200,
            {
                "items": [{"name": "table1", "share": "share1", "schema": "default"}],
                "nextPageToken": "p2",
            },
        ),
        make_response(
            200, {"items": [{"name": "table3", "share": "share1", "schema": "default"}]}
        ),
    ]
    schemas = sharing_client.list_schemas(Share("share1"))
    assert schemas == [Schema("default", "share1")]
    assert sharing_client.list_tables(schemas[0]) == [
        Table("table1", "share1", "default"),
        Table("table3", "share1", "default"),
    ]


def test_list_all_tables(sharing_client: SharingClient, session):
    session.get.side_effect = [
        make_response(200, {"items": [{"name": "share1"}, {"name": "share2"}]}),
        make_response(200, {"items": [{"name": "t1", "share": "share1", "schema": "s"}]}),
        make_response(200, {"items": [{"name": "t2", "share": "share2", "schema": "s"}]}),
    ]
    assert sharing_client.list_all_tables() == [
        Table("t1", "share1", "s"),
        Table("t2", "share2", "s"),
    ]
    assert _requested_urls(session.get)[1:] == [
        f"{ENDPOINT}/shares/share1/schemas/all-tables",
        f"{ENDPOINT}/shares/share2/schemas/all-tables",
    ]


def test_list_all_tables_falls_back_without_all_tables_api(sharing_client: SharingClient, session):
    session.get.side_effect = [
        make_response(200, {"items": [{"name": "share1"}]}),
        make_response(404, {"errorCode": "NOT_FOUND", "message": "unknown api"}),
        make_response(200, {"items": [{"name": "s", "share": "share1"}]}),
        make_response(200, {"items": [{"name": "t1", "share": "share1", "schema": "s"}]}),
    ]
    assert sharing_client.list_all_tables() == [Table("t1", "share1", "s")]
    assert _requested_urls(session.get)[2:] == [
        f"{ENDPOINT}/shares/share1/schemas",
        f"{ENDPOINT}/shares/share1/schemas/s/tables",
    ]


def test_list_all_tables_propagates_other_errors(sharing_client: SharingClient, session):
    session.get.side_effect = [
        make_response(200, {"items": [{"name": "share1"}]}),
        make_response(403, {"errorCode": "FORBIDDEN", "message": "m"}),
    ]
    with pytest.raises(DeltaSharingError) as e:
        sharing_client.list_all_tables()
    assert e.value.status_code == 403


def test_get_table_version(sharing_client: SharingClient, session):
    table = Table("table1", "share1", "default")
    session.get.return_value = make_response(200, headers={"Delta-Table-Version": "42"})
    assert sharing_client.get_table_version(table) == 42

    ts = datetime(2021, 8, 1, tzinfo=timezone.utc)
    assert sharing_client.get_table_version(table, TableVersionQuery.at(ts)) == 42
    assert URL(session.get.call_args.args[0]).query["startingTimestamp"] == "2021-08-01T00:00:00Z"

    session.get.return_value = make_response(200)
    with pytest.raises(DeltaSharingError) as e:
        sharing_client.get_table_version(table)
    assert e.value.kind == ErrorKind.PARSE_RESPONSE


def test_get_table_data_and_changes(sharing_client: SharingClient, session):
    table = Table("table1", "share1", "default")
    lines = ndjson(
        {"protocol": {"minReaderVersion": 1}},
        {
            "metaData": {
                "id": "id",
                "format": {"provider": "parquet"},
                "schemaString": "{}",
                "partitionColumns": [],
            }
        },
    )
    session.post.return_value = make_response(200, lines, headers={"delta-table-version": "5"})
    response = sharing_client.get_table_data(
        table, json_predicate_hints='{"op":"isNull"}', starting_version=1, ending_version=2
    )
    assert response.delta_table_version == 5
    assert response.add_files == []
    assert session.post.call_args.kwargs["json"] == {
        "jsonPredicateHints": '{"op":"isNull"}',
        "startingVersion": 1,
        "endingVersion": 2,
    }

    session.get.return_value = make_response(200, lines)
    changes = sharing_client.get_table_changes(table, CdfOptions(starting_version=0))
    assert changes.actions == []
    assert changes.metadata.id == "id"


@pytest.mark.skipif(not ENABLE_INTEGRATION, reason=SKIP_MESSAGE)
def test_live_listing(live_sharing_client: SharingClient):
    shares = live_sharing_client.list_shares()
    for share in shares:
        assert live_sharing_client.get_share(share.name) == share
    tables = live_sharing_client.list_all_tables()
    for table in tables[:1]:
        assert live_sharing_client.get_table_version(table) >= 0
        assert live_sharing_client.get_table_metadata(table).metadata.id is not None
