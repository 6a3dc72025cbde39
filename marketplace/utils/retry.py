# marketplace/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from sqlalchemy.exc import IntegrityError, OperationalError
import redis

from marketplace.utils.settings import CHECKOUT_RETRY_ATTEMPTS


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


#deadlock / serialization failure -> the whole transaction is replayed
def transaction_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(CHECKOUT_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
        retry=retry_if_exception_type(OperationalError),
    )


#two first-inserts of the same unique row: the loser replays and finds the winner's row
def insert_race_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(2),
        retry=retry_if_exception_type(IntegrityError),
    )
