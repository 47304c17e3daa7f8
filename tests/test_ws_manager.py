import asyncio

from squidparty.services.ws_manager import QUEUE_MAXSIZE, Connection, state_message


def test_slow_client_keeps_only_latest_snapshots():
    async def scenario():
        conn = Connection(code="SLOW01", ws=None, loop=asyncio.get_running_loop())
        for i in range(QUEUE_MAXSIZE + 36):
            conn.push(state_message("SLOW01", {"seq": i}))
        await asyncio.sleep(0)
        return conn

    conn = asyncio.run(scenario())
    assert conn.queue.qsize() == QUEUE_MAXSIZE
    assert conn.dropped == 36
    assert conn.queue.get_nowait()["payload"] == {"seq": 36}


def test_session_end_message_survives_a_full_queue():
    async def scenario():
        conn = Connection(code="SLOW02", ws=None, loop=asyncio.get_running_loop())
        for i in range(QUEUE_MAXSIZE):
            conn.push(state_message("SLOW02", {"seq": i}))
        conn.push(state_message("SLOW02", None))
        conn.push(None)
        await asyncio.sleep(0)
        return conn

    conn = asyncio.run(scenario())
    items = [conn.queue.get_nowait() for _ in range(conn.queue.qsize())]
    assert items[-2] == {"type": "session_ended", "payload": {"code": "SLOW02"}}
    assert items[-1] is None
