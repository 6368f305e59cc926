"""
Main entry point for the home bridge server
"""
import asyncio

from mqtt.server import HomeBridgeServer


async def main():
    server = HomeBridgeServer()
    await server.run_forever()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
