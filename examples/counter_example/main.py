import asyncio
import logging

from counter_actions import increment, increment_by, decrement, reset, load_count_request
from counter_store import store


async def main():
    store.on_change.subscribe(
        on_next=lambda state: print(f"計數變化: {state.count} (loading={state.loading})")
    )

    print("\n==== 開始測試基本操作 ====")
    store.dispatch(increment())
    store.dispatch(increment_by(5))
    store.dispatch(decrement())
    store.dispatch(reset(10))

    print("\n==== 開始測試非同步操作 ====")
    store.dispatch(load_count_request())
    store.dispatch(load_count_request())

    # 等待 epic 的延遲輸出
    await asyncio.sleep(1)

    print("\n==== 最終狀態 ====")
    print(store.state)
    store.teardown()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
