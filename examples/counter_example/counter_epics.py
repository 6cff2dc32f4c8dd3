import logging

import reactivex
from reactivex import operators as ops

from rxstore import create_epic, of_type
from counter_actions import (
    load_count_request,
    load_count_success,
)

logger = logging.getLogger(__name__)


def fake_api():
    """模擬 API 呼叫"""
    return reactivex.of(42)


class CounterEpics:
    @create_epic
    def load_count(self, actions, store):
        """收到 load_count_request 後從 API 載入數據"""
        return actions.pipe(
            of_type(load_count_request),
            ops.do_action(lambda _: logger.info("Epic: Loading counter...")),
            ops.flat_map(lambda _: fake_api()),
            ops.map(load_count_success),
        )

    @create_epic(dispatch=False)
    def log_actions(self, actions, store):
        """只做日誌，不 dispatch 新 action"""
        return actions.pipe(
            ops.do_action(
                lambda action: logger.info("[Log] Action: %s (count=%s)", action.type, store.state.count)
            ),
        )
