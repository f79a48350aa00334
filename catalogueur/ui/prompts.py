"""
Interactive choosers for human-in-the-loop disambiguation

A chooser provides two coroutines:

    prompt_with_search(initial_query, search_fn) -> ItemOption | None
    prompt_image_choice(options, caption) -> ImageOption | None

Returning None means the user dismissed the prompt. ConsoleChooser is the
terminal implementation; a GUI host would provide its own.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from catalogueur.models import ImageOption, ItemOption

logger = logging.getLogger(__name__)

SearchFunction = Callable[[str], Awaitable[List[ItemOption]]]


class ConsoleChooser:
    """
    Terminal chooser

    Search prompt:
    - a number selects that row ("#3" also works); a number outside the
      rows is searched for, so titles like "1942" stay reachable
    - any other text runs a new search for that text
    - empty input (or Ctrl+C / Ctrl+D) cancels

    Example:
        chooser = ConsoleChooser()
        option = await chooser.prompt_with_search("Doom", search_fn)
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        # Prompts from concurrent resolutions must not interleave
        self._lock = asyncio.Lock()

    async def _ask(self, prompt: str) -> Optional[str]:
        """Read one line without blocking the event loop; None on interrupt."""
        try:
            response = await asyncio.to_thread(input, prompt)
        except (KeyboardInterrupt, EOFError):
            logger.info("User interrupted prompt")
            return None
        return response.strip()

    def _render_options(self, query: str, options: List[ItemOption]) -> None:
        table = Table(title=f"Search results for: {query}", box=box.SIMPLE)
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Name", style="bold")
        table.add_column("Details")
        for i, option in enumerate(options, 1):
            table.add_row(str(i), option.name, option.description or "")
        self.console.print(table)

    async def prompt_with_search(self, initial_query: str, search_fn: SearchFunction) -> Optional[ItemOption]:
        """
        Let the user pick a search result, re-searching as they type

        Args:
            initial_query: Query the prompt opens with
            search_fn: Coroutine returning the options for a query

        Returns:
            Selected option, or None if the user cancelled
        """
        async with self._lock:
            query = initial_query
            options = await search_fn(query)

            while True:
                if options:
                    self._render_options(query, options)
                else:
                    self.console.print(f"No results for: {query}")

                response = await self._ask("Number (or #number) to select, text to search again, empty to cancel: ")
                if not response:
                    logger.info(f"User cancelled search prompt (last query: {query})")
                    return None

                # "#3" always selects; a bare number outside the rows is a title ("1942")
                explicit = response.startswith("#")
                number = response[1:].strip() if explicit else response
                if number.isdigit():
                    choice = int(number)
                    if 1 <= choice <= len(options):
                        selected = options[choice - 1]
                        logger.info(f"User selected #{choice}: {selected.name}")
                        return selected
                    if explicit:
                        self.console.print(f"Please enter a number between 1 and {len(options)}")
                        continue

                query = response
                options = await search_fn(query)

    async def prompt_image_choice(self, options: List[ImageOption], caption: str) -> Optional[ImageOption]:
        """
        Let the user pick one image by its preview URL

        Args:
            options: Images to choose from
            caption: Prompt caption

        Returns:
            Selected option, or None if the user cancelled
        """
        if not options:
            return None

        async with self._lock:
            table = Table(title=caption, box=box.SIMPLE)
            table.add_column("#", justify="right", style="cyan")
            table.add_column("Preview")
            for i, option in enumerate(options, 1):
                table.add_row(str(i), option.path)
            self.console.print(table)

            while True:
                response = await self._ask(f"Enter choice [1-{len(options)}], empty to cancel: ")
                if not response:
                    logger.info(f"User cancelled image prompt: {caption}")
                    return None
                try:
                    choice = int(response)
                except ValueError:
                    self.console.print("Please enter a valid number")
                    continue
                if 1 <= choice <= len(options):
                    return options[choice - 1]
                self.console.print(f"Please enter a number between 1 and {len(options)}")
