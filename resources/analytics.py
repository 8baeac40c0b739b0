import logging
from middleware.auth import auth_required
from flask_restful import Resource
from flask import request, current_app
from services import get_engine
from utils.response import success_response, error_response, engine_error_response
from utils.cache import build_analytics_cache_key, CACHE_TTL_SHORT

logger = logging.getLogger(__name__)


class AnalyticsResource(Resource):
    """Resource for the caller's swipe analytics"""

    @auth_required
    def get(self):
        """Get summed counters for day, week, month or all time"""
        try:
            user_id = request.user_id
            period = request.args.get('period', 'all')
            cache = current_app.extensions['cache']

            cache_key = build_analytics_cache_key(user_id, period)
            cached_result = cache.get(cache_key)
            if cached_result is not None:
                logger.debug(f"Cache HIT for analytics - user: {user_id}")
                return success_response(cached_result, "Analytics retrieved successfully (cached)")

            result = get_engine().read_analytics(user_id, period)
            if not result.ok:
                return engine_error_response(result.error)

            analytics = dict(result.value)
            if analytics['last_updated'] is not None:
                analytics['last_updated'] = analytics['last_updated'].isoformat()

            cache.set(cache_key, analytics, ttl=CACHE_TTL_SHORT)
            return success_response(analytics, "Analytics retrieved successfully")

        except Exception as e:
            logger.error(f"Error fetching analytics: {str(e)}")
            return error_response("Failed to fetch analytics", 500)
