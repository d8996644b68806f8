#
# Copyright (2021) The Delta Lake Project Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#

import os
import delta_sharing_client
from delta_sharing_client import CdfOptions, TableVersionQuery

# Point to the profile file. It can be a file on the local file system or a file on a remote storage.
profile_file = os.path.dirname(__file__) + "/../open-datasets.share"

# Create a SharingClient.
client = delta_sharing_client.SharingClient(profile_file)

# List all shared tables.
print("########### All Available Tables #############")
tables = client.list_all_tables()
print(tables)

# Look up a share by name. Unknown shares come back as None.
print("########### Share delta_sharing #############")
print(client.get_share("delta_sharing"))

# Create a url to access a shared table.
# A table path is the profile file path following with `#` and the fully qualified name of a table (`<share-name>.<schema-name>.<table-name>`).
table_url = profile_file + "#delta_sharing.default.owid-covid-data"

print("########### Version and metadata of delta_sharing.default.owid-covid-data #############")
print(delta_sharing_client.get_table_version(table_url))
print(delta_sharing_client.get_table_metadata(table_url))

table = delta_sharing_client.Table(name="owid-covid-data", share="delta_sharing", schema="default")

# The first version committed at or after a timestamp.
print(client.get_table_version(table, TableVersionQuery.parse("2021-08-01T00:00:00Z")))

# Fetch the pre-signed urls of at most 10 rows worth of files.
print("########### Files of delta_sharing.default.owid-covid-data #############")
for add_file in client.get_table_data(table, limit_hint=10).add_files:
    print(add_file.url)

# The change data feed of the table, if it is enabled.
try:
    print(client.get_table_changes(table, CdfOptions(starting_version=0)).actions)
except delta_sharing_client.DeltaSharingError as e:
    print(f"Change data feed not available: {e}")
