import json
from unittest.mock import MagicMock

import redis

from utils.cache import CacheManager, build_analytics_cache_key


def test_disabled_cache_is_a_no_op():
    cache = CacheManager(None)
    assert not cache.is_available()
    assert cache.get('anything') is None
    assert cache.set('anything', {'a': 1}) is False
    assert cache.delete_pattern('*') == 0
    cache.invalidate_user_cache(1, 2)


def test_from_config_respects_cache_enabled():
    assert not CacheManager.from_config({'CACHE_ENABLED': False}).is_available()


def test_get_and_set_round_trip_json():
    client = MagicMock()
    client.get.return_value = json.dumps({'total_swipes': 3})
    cache = CacheManager(client)

    assert cache.get('analytics:1:day') == {'total_swipes': 3}
    assert cache.set('analytics:1:day', {'total_swipes': 3}, ttl=60) is True
    client.setex.assert_called_once_with('analytics:1:day', 60, json.dumps({'total_swipes': 3}))


def test_redis_errors_degrade_to_misses():
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("down")
    client.setex.side_effect = redis.ConnectionError("down")
    cache = CacheManager(client)

    assert cache.get('key') is None
    assert cache.set('key', 1) is False


def test_invalidate_user_cache_deletes_matching_keys():
    client = MagicMock()
    client.scan_iter.side_effect = lambda match: iter([match.replace('*', 'day')])
    client.delete.return_value = 1
    cache = CacheManager(client)

    cache.invalidate_user_cache(7)

    deleted = [call.args[0] for call in client.delete.call_args_list]
    assert deleted == ['analytics:7:day']


def test_analytics_cache_key():
    assert build_analytics_cache_key(7, 'week') == 'analytics:7:week'
