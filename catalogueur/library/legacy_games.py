"""
Legacy Games launcher library reader.

The launcher keeps the store catalog and the user's licenses in one JSON
app-state file. A bundle can contain games that are also sold separately or
in other bundles; every game is reported once, keyed by its installer UUID.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


DEFAULT_APP_STATE_PATH = os.path.join(
    os.environ.get("APPDATA", os.path.expanduser("~")), "legacy-games-launcher", "app-state.json"
)


@dataclass(frozen=True)
class AppStateGame:
    """Game entry of a launcher bundle."""
    game_name: str
    installer_uuid: str
    game_description: Optional[str] = None
    game_coverart: Optional[str] = None
    game_installed_size: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["AppStateGame"]:
        installer_uuid = data.get("installer_uuid")
        if not installer_uuid:
            return None
        return cls(
            game_name=data.get("game_name") or "",
            installer_uuid=str(installer_uuid).lower(),
            game_description=data.get("game_description"),
            game_coverart=data.get("game_coverart"),
            game_installed_size=data.get("game_installed_size"),
        )


def _find_bundle(bundles: Optional[List[Dict[str, Any]]], bundle_id: int) -> Optional[Dict[str, Any]]:
    for bundle in bundles or []:
        if bundle.get("id") == bundle_id:
            return bundle
    return None


class AppStateReader:
    """Reads the games a user owns from the launcher app-state file."""

    def __init__(self, app_state_path: Optional[str] = None):
        self.app_state_path = Path(app_state_path or DEFAULT_APP_STATE_PATH).expanduser()

    def _load(self) -> Dict[str, Any]:
        with open(self.app_state_path, 'r', encoding='utf-8') as f:
            return json.load(f) or {}

    def get_user_owned_games(self) -> Optional[List[AppStateGame]]:
        """
        Games owned by the launcher's user.

        Owned bundle ids come from the user's giveaway downloads (or the
        profile downloads of launcher versions before 1.6.4). Each id is
        looked up in the catalog first; bundles without games there are
        looked up in the giveaway catalog.

        Returns:
            Owned games in bundle order, one per installer UUID (first seen
            wins), or None when the file or a required section is missing

        Raises:
            json.JSONDecodeError: The app-state file is not valid JSON
        """
        if not self.app_state_path.exists():
            logger.info(f"Legacy Games app state file not found in {self.app_state_path}")
            return None

        app_state = self._load()
        user = app_state.get("user") or {}
        downloads = user.get("giveawayDownloads")
        if downloads is None:
            downloads = (user.get("profile") or {}).get("downloads")
        site_data = app_state.get("siteData") or {}
        catalog = site_data.get("catalog")

        if downloads is None or catalog is None:
            if downloads is None:
                logger.warning(f"Missing downloads section in {self.app_state_path}")
            if catalog is None:
                logger.warning(f"Missing catalog section in {self.app_state_path}")
            return None

        owned_bundle_ids: List[int] = []
        for download in downloads:
            product_id = download.get("product_id")
            if product_id is not None and product_id not in owned_bundle_ids:
                owned_bundle_ids.append(product_id)

        owned_bundles = []
        for bundle_id in owned_bundle_ids:
            bundle = _find_bundle(catalog, bundle_id)
            if bundle is None or not bundle.get("games"):
                logger.info(
                    f"No catalog bundle found with games for {bundle_id}. "
                    f"Catalog entry: {(bundle or {}).get('name')}"
                )
                bundle = _find_bundle(site_data.get("giveawayCatalog"), bundle_id)

            if bundle is None:
                logger.warning(f"Could not find a bundle with ID {bundle_id}")
            else:
                owned_bundles.append(bundle)

        games_by_installer: Dict[str, AppStateGame] = {}
        for bundle in owned_bundles:
            if not bundle.get("games"):
                logger.warning(f"No games for bundle {bundle.get('id')} - {bundle.get('name')}")
                continue
            for game_data in bundle["games"]:
                game = AppStateGame.from_dict(game_data)
                if game is None or game.installer_uuid in games_by_installer:
                    continue
                games_by_installer[game.installer_uuid] = game

        return list(games_by_installer.values())
