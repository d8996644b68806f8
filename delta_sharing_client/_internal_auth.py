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

from abc import ABC, abstractmethod
from datetime import datetime, timezone
import logging
from typing import Dict, Optional

from delta_sharing_client.errors import DeltaSharingError, ErrorKind
from delta_sharing_client.protocol import DeltaSharingProfile, REDACTED

# This module contains internal implementation classes.
# These classes are not part of the public API and should not be used directly by users.
# Internal classes may change or be removed at any time without notice.


class AuthCredentialProvider(ABC):
    @abstractmethod
    def provide_token(self) -> str:
        pass

    def is_expired(self) -> bool:
        return False


class BearerTokenAuthProvider(AuthCredentialProvider):
    def __init__(self, bearer_token: Optional[str], expiration_time: Optional[datetime]):
        self.bearer_token = bearer_token
        self.expiration_time = expiration_time

    def __repr__(self) -> str:
        return (
            f"BearerTokenAuthProvider(bearer_token={REDACTED!r}, "
            f"expiration_time={self.expiration_time!r})"
        )

    def provide_token(self) -> str:
        if not self.bearer_token:
            raise DeltaSharingError.profile("Bearer token is missing in profile")
        if self.is_expired():
            raise DeltaSharingError.profile(
                f"Bearer token in profile has expired at {self.expiration_time.isoformat()}"
            )
        return self.bearer_token

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expiration_time is None:
            return False
        if now is None:
            now = datetime.now(timezone.utc)
        return self.expiration_time < now


class AuthCredentialProviderFactory:
    @staticmethod
    def create_auth_credential_provider(profile: DeltaSharingProfile) -> AuthCredentialProvider:
        if profile.type == DeltaSharingProfile.BEARER_TOKEN:
            return BearerTokenAuthProvider(profile.bearer_token, profile.expiration_time)

        # any other scenario is unsupported
        raise DeltaSharingError.profile(
            f"unsupported profile.type: {profile.type}"
            f" profile.share_credentials_version {profile.share_credentials_version}"
        )


def authorization_headers(provider: AuthCredentialProvider) -> Dict[str, str]:
    """
    Build the ``Authorization`` header for one request. Any failure of the provider is
    reported as a PROFILE error so that it is never mistaken for a transport failure.
    """
    try:
        token = provider.provide_token()
    except DeltaSharingError as e:
        logging.error(f"Failed to authorize request: {e}")
        if e.kind == ErrorKind.PROFILE:
            raise
        raise DeltaSharingError.profile(f"Failed to authorize request: {e.message}") from e
    except Exception as e:
        logging.error(f"Failed to authorize request: {e}")
        raise DeltaSharingError.profile(f"Failed to authorize request: {e}") from e
    return {"Authorization": f"Bearer {token}"}
