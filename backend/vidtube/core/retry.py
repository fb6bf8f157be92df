# 재시도 로직 유틸리티
# - 미디어 호스트 업로드는 네트워크 오류나 일시적 서버 오류로 실패할 수 있다
# - tenacity로 지수 백오프 재시도를 건다

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
    after_log,
)
import logging
from typing import Type, Tuple

import requests

from .exceptions import MediaUploadError

logger = logging.getLogger(__name__)


def create_api_retry_decorator(
    max_attempts: int = 3,
    initial_wait: float = 1.0,
    max_wait: float = 10.0,
    exceptions: Tuple[Type[Exception], ...] = (
        MediaUploadError,
        requests.exceptions.ConnectionError,
        requests.exceptions.Timeout,
    )
):
    """
    외부 API 호출용 재시도 데코레이터를 만듭니다.

    - max_attempts: 첫 시도를 포함한 최대 시도 횟수
    - initial_wait / max_wait: 지수 백오프 대기 시간의 하한/상한 (초)
    - exceptions: 이 예외들이 발생하면 재시도 (4xx 응답은 재시도해도 결과가 같으므로 제외)

    모든 시도가 실패하면 마지막 예외가 그대로 올라갑니다 (reraise=True).

    사용 예시:
        @create_api_retry_decorator(max_attempts=3)
        def call_api():
            ...
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=2,
            min=initial_wait,
            max=max_wait
        ),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.DEBUG),
        reraise=True,
    )


# 기본 재시도 데코레이터
api_retry = create_api_retry_decorator(
    max_attempts=3,
    initial_wait=1.0,
    max_wait=10.0
)
