# main.py

import asyncio
import signal
from a2s_query.config import Config
from a2s_query.errors import QueryError
from a2s_query.logger import Logger
from a2s_query.query_client.query_client import QueryClient
from a2s_query.transport.udp_transport import UdpTransport


class MainApp:
    def __init__(self, config=None):
        self.config = config
        self.logger = None
        self.running = True
        self.shutdown_event = asyncio.Event()
        self.transports = []

    async def run(self):
        self.config = self.config or Config()
        self.logger = Logger(self.config)
        self.logger.info("Starting application...")

        server_ids = list(self.config.get("SERVERS", {}).keys())
        if not server_ids:
            self.logger.error("Не найдено ни одного сервера в конфиге. Выход.")
            return

        # Отдельный транспорт на каждый сервер: один транспорт - один ожидающий запрос
        tasks = []
        for server_id in server_ids:
            transport = UdpTransport(bind_host=self.config.get("QUERY.BIND_HOST", "0.0.0.0"))
            await transport.open()
            self.transports.append(transport)
            client = QueryClient.from_config(transport, server_id, config=self.config)
            self.logger.info(f"Опрос сервера {server_id}: {client.host}:{client.port}")
            tasks.append(asyncio.create_task(self.poll_server(server_id, client)))

        await self.shutdown_event.wait()
        self.logger.info("Received shutdown signal. Cancelling tasks...")

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        for transport in self.transports:
            transport.close()
        self.running = False
        self.logger.info("Application shutdown complete.")

    async def poll_server(self, server_id, client):
        interval = self.config.get("QUERY.INTERVAL", 30)
        while not self.shutdown_event.is_set():
            try:
                info = await client.fetch_info()
                self.logger.info(
                    f"[{server_id}] {info.name} | {info.map} | "
                    f"{info.players}/{info.max_players} (боты: {info.bots}) | {info.version}")
            except QueryError as e:
                self.logger.error(f"[{server_id}] Не удалось получить информацию о сервере: {e}")
            try:
                await asyncio.wait_for(self.shutdown_event.wait(), interval)
            except asyncio.TimeoutError:
                pass


async def main():
    app = MainApp()

    def handle_shutdown(signum, frame):
        if not app.running:
            return
        if app.logger:
            app.logger.info(f"Received shutdown signal {signum}. Shutting down...")
        app.shutdown_event.set()

    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)

    await app.run()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
    finally:
        print("Application exited cleanly.")
