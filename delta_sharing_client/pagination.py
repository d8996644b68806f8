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
import logging
import time
from typing import Callable, List, Optional, TypeVar

from delta_sharing_client.errors import DeltaSharingError
from delta_sharing_client.protocol import ListResponse

T = TypeVar("T")

DEFAULT_MAX_PAGES = 10000


class Pagination:
    """
    The cursor of a paginated listing.

    A cursor starts before the first page, so ``has_next_page`` is true until a page has been
    fetched. After that it stays true only while the server keeps returning a non-empty page
    token. A cursor belongs to the single listing that drives it.
    """

    def __init__(
        self,
        max_results: Optional[int] = None,
        page_token: Optional[str] = None,
        is_start: bool = True,
    ):
        if max_results is not None and max_results <= 0:
            raise ValueError(f"max_results must be a positive integer but got {max_results}")
        self.max_results = max_results
        self.page_token = page_token
        self.is_start = is_start

    @staticmethod
    def from_start(max_results: Optional[int] = None) -> "Pagination":
        return Pagination(max_results, None, True)

    @staticmethod
    def from_token(max_results: Optional[int], page_token: str) -> "Pagination":
        return Pagination(max_results, page_token, False)

    def set_page_token(self, page_token: Optional[str]) -> None:
        self.is_start = False
        self.page_token = page_token

    def has_next_page(self) -> bool:
        return self.is_start or (self.page_token is not None and self.page_token != "")

    def is_finished(self) -> bool:
        return not self.has_next_page()

    def __repr__(self) -> str:
        return (
            f"Pagination(max_results={self.max_results!r}, page_token={self.page_token!r}, "
            f"is_start={self.is_start!r})"
        )


def paginate(
    fetch_page: Callable[[Pagination], ListResponse[T]],
    *,
    max_results: Optional[int] = None,
    max_pages: Optional[int] = DEFAULT_MAX_PAGES,
    max_duration: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
) -> List[T]:
    """
    Fetch every page of a listing and return all the items in server order.

    :param fetch_page: fetches the page at the given cursor.
    :param max_results: the page size to ask the server for.
    :param max_pages: the most pages to fetch. A server that keeps handing out page tokens
      past this limit fails the listing with an INTERNAL error. ``None`` disables the limit.
    :param max_duration: the most seconds the whole listing may take before it fails with an
      INTERNAL error. ``None`` disables the limit.
    :return: the items of all pages. Any error raised while fetching a page propagates and
      nothing fetched before it is returned.
    """
    items: List[T] = []
    cursor = Pagination.from_start(max_results)
    deadline = None if max_duration is None else clock() + max_duration
    pages = 0
    while cursor.has_next_page():
        if max_pages is not None and pages >= max_pages:
            logging.error(f"Listing still has more pages after {pages} pages")
            raise DeltaSharingError.internal(
                f"Pagination exceeded the maximum of {max_pages} pages"
            )
        if deadline is not None and clock() > deadline:
            logging.error(f"Listing still has more pages after {max_duration} seconds")
            raise DeltaSharingError.internal(
                f"Pagination exceeded the time budget of {max_duration} seconds"
            )
        page = fetch_page(cursor)
        items.extend(page.items)
        cursor.set_page_token(page.next_page_token)
        pages += 1
        logging.info(f"Fetched page {pages} with {len(page.items)} items")
    return items
