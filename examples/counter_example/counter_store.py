from rxstore import EpicMiddleware, LoggerMiddleware, Store, collect_epics, combine_epics

from counter_epics import CounterEpics
from counter_reducers import counter_reducer

epic_middleware = EpicMiddleware(combine_epics(collect_epics(CounterEpics)))

store = Store(
    counter_reducer,
    counter_reducer.initial_state,
    [epic_middleware, LoggerMiddleware],
    distinct=True,
)
