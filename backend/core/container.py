"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, dépôts, clients externes, résolveur de lieux,
services) et expose un singleton `container` utilisé par le reste de l'application. Les tests
remplacent ses attributs par des doublures.
"""

from backend.core.settings import Settings, get_settings
from backend.domain.location_resolver import LocationResolver, ResolverLimits
from backend.domain.services import ChartService, FolderService
from backend.infra.http_clients import PlaceSearchClient, TimezoneClient
from backend.infra.repositories import (
    InMemoryChartRepo,
    InMemoryFolderRepo,
    InMemoryLocationRepo,
    InMemoryUserRepo,
    RedisChartRepo,
    RedisFolderRepo,
    RedisLocationRepo,
    RedisUserRepo,
)


class Container:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._build_repositories()
        self.place_search = PlaceSearchClient(
            base_url=self.settings.GEOCODING_BASE_URL,
            user_agent=self.settings.GEOCODING_USER_AGENT,
            timeout=self.settings.EXTERNAL_HTTP_TIMEOUT_S,
        )
        self.timezone_lookup = TimezoneClient(
            base_url=self.settings.TIMEZONE_API_BASE_URL,
            timeout=self.settings.EXTERNAL_HTTP_TIMEOUT_S,
        )
        self.wire()

    def _build_repositories(self) -> None:
        if self.settings.REDIS_URL:
            try:
                url = self.settings.REDIS_URL
                repos = (
                    RedisUserRepo(url),
                    RedisFolderRepo(url),
                    RedisChartRepo(url),
                    RedisLocationRepo(url),
                )
                repos[0].client.ping()
                self.user_repo, self.folder_repo, self.chart_repo, self.location_repo = repos
                self.storage_backend = "redis"
                return
            except Exception as err:
                if self.settings.REQUIRE_REDIS:
                    raise RuntimeError("Redis required but unavailable") from err
                self.storage_backend = "memory-fallback"
        else:
            if self.settings.REQUIRE_REDIS:
                raise RuntimeError("Redis required but REDIS_URL not set")
            self.storage_backend = "memory"
        self.user_repo = InMemoryUserRepo()
        self.folder_repo = InMemoryFolderRepo()
        self.chart_repo = InMemoryChartRepo()
        self.location_repo = InMemoryLocationRepo()

    def wire(self) -> None:
        """(Re)construit résolveur et services à partir des dépôts et clients courants."""
        s = self.settings
        self.location_resolver = LocationResolver(
            repository=self.location_repo,
            place_search=self.place_search,
            timezone_lookup=self.timezone_lookup,
            limits=ResolverLimits(
                min_query_len=s.LOCATION_SEARCH_MIN_QUERY_LEN,
                cache_sufficient=s.LOCATION_CACHE_SUFFICIENT,
                max_results=s.LOCATION_SEARCH_MAX_RESULTS,
                remote_limit=s.LOCATION_REMOTE_LIMIT,
                dedup_tolerance=s.LOCATION_DEDUP_TOLERANCE_DEG,
            ),
        )
        self.folder_service = FolderService(self.folder_repo, self.chart_repo)
        self.chart_service = ChartService(
            self.chart_repo, self.folder_repo, self.location_repo, self.location_resolver
        )

    def close(self) -> None:
        """Libère les pools HTTP des clients externes."""
        self.place_search.close()
        self.timezone_lookup.close()


container = Container()
