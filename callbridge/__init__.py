"""
Realtime Call Bridge - Telephony Media Streams to OpenAI Realtime API

This application lets callers hold a spoken conversation with an OpenAI Realtime
voice agent over an ordinary phone call. The telephony gateway streams the call's
audio (8 kHz G.711 mu-law) over a websocket; the bridge relays it to a Realtime
session and streams the synthesized replies back onto the call.

Architecture Overview:
- FastAPI server exposing the ``/media-stream`` websocket endpoint
- One OpenAI Realtime websocket session per call
- A synchronous turn-taking controller per call (greeting, responses, barge-in)
- Prebuffered outbound audio with playback tracking through marks

Key Components:
- bridge: Protocol translation, turn taking, audio pacing and the per-call lifecycle
- config: Constants, validated settings and logging setup
- models: Call state and the schemas of both websocket protocols
- websocket_manager: Accepts media connections and runs a bridge for each

Getting Started:
1. Set up environment variables:
   - OPENAI_API_KEY: Your OpenAI API key
   - INSTRUCTIONS or INSTRUCTIONS_FILE: The agent's instructions
   - RESPONSE_MODE: ``manual`` (default) or ``automatic``
   - PORT / HOST / LOG_LEVEL: Server settings

2. Start the server:
   ```bash
   python run.py
   ```

3. Point the telephony gateway's media stream at ``wss://your-server/media-stream``.
"""
