"""Redis adapter – connection, tag index, pub/sub transport and the tagged cache."""
from tagcache.adapters.redis.connection import RedisConnection
from tagcache.adapters.redis.pubsub import RedisPubSubTransport
from tagcache.adapters.redis.tags import RedisTagIndex, TagInvalidation
from tagcache.adapters.redis.cache import TaggedCache, TaggedRedisCache, parse_info

__all__ = [
    "RedisConnection",
    "RedisPubSubTransport",
    "RedisTagIndex",
    "TagInvalidation",
    "TaggedCache",
    "TaggedRedisCache",
    "parse_info",
]
