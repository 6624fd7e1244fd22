import asyncio

from session_handoff.main import main

asyncio.run(main())
