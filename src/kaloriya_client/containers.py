"""Dependency container wiring for the client."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from kaloriya_client.adapters.activities_api import HttpxActivitiesApi
from kaloriya_client.adapters.admin_api import HttpxAdminApi
from kaloriya_client.adapters.analysis_api import HttpxAnalysisApi
from kaloriya_client.adapters.auth_api import HttpxAuthApi
from kaloriya_client.adapters.embedded_host import StaticEmbeddedHost
from kaloriya_client.adapters.feedback_api import HttpxFeedbackApi
from kaloriya_client.adapters.http import HttpxApiTransport
from kaloriya_client.adapters.json_file_store import JsonFileStore
from kaloriya_client.adapters.meals_api import HttpxMealsApi
from kaloriya_client.config import Settings, normalize_base_url
from kaloriya_client.services.activities import ActivityService
from kaloriya_client.services.admin import AdminService
from kaloriya_client.services.analysis import AnalysisService
from kaloriya_client.services.bootstrap import SessionBootstrapper
from kaloriya_client.services.feedback import FeedbackService
from kaloriya_client.services.meals import MealService
from kaloriya_client.services.mutations import OptimisticMutator
from kaloriya_client.services.preferences import PreferencesStore
from kaloriya_client.services.query_cache import QueryCache
from kaloriya_client.services.session_store import SessionStore
from kaloriya_client.services.storage import InMemoryStore, KeyValueStore


@dataclass
class AppContainer:
    """Holds client-wide dependencies."""

    settings: Settings
    transport: HttpxApiTransport
    storage: KeyValueStore
    session_store: SessionStore
    bootstrapper: SessionBootstrapper
    query_cache: QueryCache
    meal_service: MealService
    activity_service: ActivityService
    feedback_service: FeedbackService
    admin_service: AdminService
    analysis_service: AnalysisService
    preferences: PreferencesStore
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    transport = HttpxApiTransport.create(
        base_url=normalize_base_url(resolved_settings.api_base_url),
        timeout_seconds=resolved_settings.request_timeout_seconds,
    )
    storage: KeyValueStore = (
        JsonFileStore(resolved_settings.storage_path)
        if resolved_settings.storage_path
        else InMemoryStore()
    )
    session_store = SessionStore(
        auth_api=HttpxAuthApi(transport),
        storage=storage,
        embedded_host=StaticEmbeddedHost(resolved_settings.embedded_init_data),
        storage_key=resolved_settings.auth_storage_key,
        optimistic_profile_updates=resolved_settings.optimistic_profile_updates,
    )
    query_cache = QueryCache(
        retry_attempts=resolved_settings.query_retry_attempts,
        retry_delay_seconds=resolved_settings.query_retry_delay_seconds,
        gc_seconds=resolved_settings.query_gc_seconds,
    )
    mutator = OptimisticMutator(query_cache)
    meal_service = MealService(
        api=HttpxMealsApi(transport),
        session=session_store,
        cache=query_cache,
        mutator=mutator,
        today_stale_seconds=resolved_settings.today_stale_seconds,
        day_stale_seconds=resolved_settings.day_stale_seconds,
        history_stale_seconds=resolved_settings.history_stale_seconds,
        stats_stale_seconds=resolved_settings.stats_stale_seconds,
    )
    activity_service = ActivityService(
        api=HttpxActivitiesApi(transport),
        session=session_store,
        cache=query_cache,
        mutator=mutator,
        activities_stale_seconds=resolved_settings.activities_stale_seconds,
        catalog_stale_seconds=resolved_settings.catalog_stale_seconds,
    )
    feedback_service = FeedbackService(
        api=HttpxFeedbackApi(transport),
        session=session_store,
        cache=query_cache,
        mutator=mutator,
        stale_seconds=resolved_settings.feedback_stale_seconds,
    )
    analysis_service = AnalysisService(
        api=HttpxAnalysisApi(
            transport,
            analyze_timeout_seconds=resolved_settings.analyze_timeout_seconds,
            health_timeout_seconds=resolved_settings.health_timeout_seconds,
        ),
        max_width=resolved_settings.image_max_width,
        quality=resolved_settings.image_quality,
        threshold_kb=resolved_settings.image_compress_threshold_kb,
    )

    async def close_resources() -> None:
        await transport.close()

    return AppContainer(
        settings=resolved_settings,
        transport=transport,
        storage=storage,
        session_store=session_store,
        bootstrapper=SessionBootstrapper(session_store, query_cache),
        query_cache=query_cache,
        meal_service=meal_service,
        activity_service=activity_service,
        feedback_service=feedback_service,
        admin_service=AdminService(HttpxAdminApi(transport), session_store),
        analysis_service=analysis_service,
        preferences=PreferencesStore(storage, resolved_settings.ui_storage_key),
        close_resources=close_resources,
    )
