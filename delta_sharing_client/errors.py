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
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    INTERNAL = "INTERNAL_ERROR"
    PROFILE = "PROFILE_ERROR"
    REQUEST = "REQUEST_ERROR"
    PARSE_RESPONSE = "PARSE_RESPONSE_ERROR"
    CLIENT_ERROR = "CLIENT_ERROR"
    SERVER_ERROR = "SERVER_ERROR"


class DeltaSharingError(Exception):
    """
    The error raised for every failure of a Delta Sharing request.

    ``kind`` tells what failed:

    * ``INTERNAL``: an invariant of the client was violated, or the server answered with an
      HTTP status the protocol does not define.
    * ``PROFILE``: the profile or its credentials cannot be used.
    * ``REQUEST``: the request could not be sent or no response was received (connection,
      TLS, timeout).
    * ``PARSE_RESPONSE``: the response body or headers did not have the expected shape.
    * ``CLIENT_ERROR`` / ``SERVER_ERROR``: the server answered with a 4xx / 5xx status.
      ``status_code`` and the server supplied ``error_code`` are set.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.error_code = error_code

    def __str__(self) -> str:
        if self.kind == ErrorKind.CLIENT_ERROR:
            return f"Client error: {self.status_code} - {self.error_code} - {self.message}"
        if self.kind == ErrorKind.SERVER_ERROR:
            return f"Server error: {self.status_code} - {self.error_code} - {self.message}"
        return f"[{self.kind.value}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"DeltaSharingError(kind={self.kind}, message={self.message!r}, "
            f"status_code={self.status_code!r}, error_code={self.error_code!r})"
        )

    def is_not_found(self) -> bool:
        return self.kind == ErrorKind.CLIENT_ERROR and self.status_code == 404

    @staticmethod
    def internal(message: str) -> "DeltaSharingError":
        return DeltaSharingError(ErrorKind.INTERNAL, message)

    @staticmethod
    def profile(message: str) -> "DeltaSharingError":
        return DeltaSharingError(ErrorKind.PROFILE, message)

    @staticmethod
    def request(message: str) -> "DeltaSharingError":
        return DeltaSharingError(ErrorKind.REQUEST, message)

    @staticmethod
    def parse_response(message: str) -> "DeltaSharingError":
        return DeltaSharingError(ErrorKind.PARSE_RESPONSE, message)

    @staticmethod
    def client(status_code: int, error_code: str, message: str) -> "DeltaSharingError":
        if not 400 <= status_code < 500:
            raise ValueError(f"{status_code} is not a client error status")
        return DeltaSharingError(ErrorKind.CLIENT_ERROR, message, status_code, error_code)

    @staticmethod
    def server(status_code: int, error_code: str, message: str) -> "DeltaSharingError":
        if not 500 <= status_code < 600:
            raise ValueError(f"{status_code} is not a server error status")
        return DeltaSharingError(ErrorKind.SERVER_ERROR, message, status_code, error_code)
