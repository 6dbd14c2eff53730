"""Create the broker tables and seed a demo agent for development."""
from __future__ import annotations

import argparse
import asyncio
from datetime import datetime, timezone

from sqlalchemy import delete

from broker.db.session import SessionLocal, engine
from broker.models.agent import Agent, AgentCategory, AgentStatus
from broker.models.base import Base

DEMO_AGENT = {
	"id": "agent-demo-banking",
	"name": "Banking Helpdesk",
	"persona_name": "Asha",
	"system_prompt": "You are Asha, a calm banking support agent. Keep answers short and never ask for a PIN.",
	"voice_gender": "female",
	"voice_accent": "Indian English",
	"description": "Answers balance, card and branch questions.",
	"company_name": "Demo Bank",
	"category": AgentCategory.BANKING,
	"status": AgentStatus.TESTING,
	"languages": ["English", "Hindi"],
}


async def bootstrap(owner_id: str, *, reset: bool = False) -> None:
	async with engine.begin() as conn:
		if reset:
			await conn.run_sync(Base.metadata.drop_all)
		await conn.run_sync(Base.metadata.create_all)

	now = datetime.now(timezone.utc)
	async with SessionLocal() as session, session.begin():
		await session.execute(delete(Agent).where(Agent.id == DEMO_AGENT["id"]))
		session.add(Agent(user_id=owner_id, created_at=now, updated_at=now, **DEMO_AGENT))

	await engine.dispose()
	print(f"Seeded agent {DEMO_AGENT['id']} for user {owner_id}")


def main() -> None:
	parser = argparse.ArgumentParser(description=__doc__)
	parser.add_argument("owner_id", help="Identity provider user id that owns the demo agent")
	parser.add_argument("--reset", action="store_true", help="Drop all broker tables first")
	args = parser.parse_args()
	asyncio.run(bootstrap(args.owner_id, reset=args.reset))


if __name__ == "__main__":
	main()
