#!/usr/bin/env python3
"""
Blueprints Relay WebSocket Client
Usage: python draw_client.py [ws://localhost:3000/ws]
"""

import asyncio
import itertools
import json
import sys

import websockets


class BlueprintDrawClient:
    def __init__(self, server_url="ws://localhost:3000/ws"):
        self.server_url = server_url
        self.websocket = None
        self.room = None
        self._ack_ids = itertools.count(1)

    async def connect(self):
        """Connect to the relay"""
        try:
            self.websocket = await websockets.connect(self.server_url)
            print(f"✅ Connected to {self.server_url}")
            return True
        except Exception as e:
            print(f"❌ Connection failed: {e}")
            return False

    async def listen_for_events(self):
        """Print events pushed by the relay"""
        try:
            async for raw in self.websocket:
                frame = json.loads(raw)
                event = frame.get("event")
                data = frame.get("data") or {}

                if event == "blueprint-update":
                    points = data.get("points", []) if isinstance(data, dict) else []
                    print(f"🖼️  Blueprint update: {len(points)} point(s)")
                elif event == "warning":
                    print(f"⚠️ Warning: {data.get('message', '')}")
                elif event == "error":
                    print(f"❌ Error: {data.get('message', '')}")
                elif event == "ack":
                    status = "ok" if data.get("ok") else data.get("message", "failed")
                    print(f"📨 Ack #{frame.get('id')}: {status}")
                else:
                    print(f"📨 {event}: {str(frame)[:100]}")
        except websockets.exceptions.ConnectionClosed:
            print("\n🔌 Connection closed by server")

    async def send_event(self, event, data, want_ack=False):
        frame = {"event": event, "data": data}
        if want_ack:
            frame["ack"] = next(self._ack_ids)
        await self.websocket.send(json.dumps(frame))

    async def join(self, author, name):
        self.room = {"author": author, "name": name}
        await self.send_event("join-room", self.room)

    async def draw(self, x, y):
        if not self.room:
            print("❌ Join a blueprint first: /join <author> <name>")
            return
        await self.send_event("draw-event", {**self.room, "point": {"x": x, "y": y}}, want_ack=True)

    async def leave(self):
        if self.room:
            await self.send_event("leave-room", self.room)
            self.room = None

    async def close(self):
        """Close the connection"""
        if self.websocket:
            await self.websocket.close()
            self.websocket = None
            print("👋 Disconnected")


async def main():
    """Interactive drawing loop"""
    url = sys.argv[1] if len(sys.argv) > 1 else "ws://localhost:3000/ws"
    client = BlueprintDrawClient(url)

    print("🚀 Blueprints Relay Client")
    print("=" * 50)
    print("Commands:")
    print("  /join <author> <name> - Join a blueprint room")
    print("  <x> <y>               - Draw a point")
    print("  /leave                - Leave the current room")
    print("  /quit                 - Exit")
    print("=" * 50)

    if not await client.connect():
        return

    listener_task = asyncio.create_task(client.listen_for_events())

    try:
        while True:
            try:
                user_input = await asyncio.get_event_loop().run_in_executor(
                    None, lambda: input("\n✏️  ")
                )
            except (KeyboardInterrupt, EOFError):
                break

            parts = user_input.strip().split()
            if not parts:
                continue
            if parts[0] in ['/quit', '/exit']:
                break
            elif parts[0] == '/join' and len(parts) == 3:
                await client.join(parts[1], parts[2])
            elif parts[0] == '/leave':
                await client.leave()
            elif len(parts) == 2:
                try:
                    x, y = float(parts[0]), float(parts[1])
                except ValueError:
                    print("❌ Expected two numbers")
                    continue
                await client.draw(x, y)
            else:
                print("❌ Unknown command")
    finally:
        listener_task.cancel()
        await client.close()

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
