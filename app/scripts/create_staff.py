"""
Create an administrator or instructor directly in the database.

Creating users over the API requires an ADMIN, so the first administrator
has to be provisioned here. Run from project root:
  python -m app.scripts.create_staff USERNAME EMAIL PASSWORD [--kind administrator|instructor]
Example:
  python -m app.scripts.create_staff admin admin@example.com 'a-long-password' \
      --full-name "Site Admin" --department Operations
"""
import argparse
import asyncio
import sys

from pydantic import ValidationError as SchemaValidationError

from app.database import AsyncSessionLocal, engine, init_models
from app.exceptions import IdentityAPIError
from app.schemas.user import UserCreateRequest
from app.services import staff_service


async def create(args: argparse.Namespace) -> int:
    try:
        data = UserCreateRequest(
            full_name=args.full_name or args.username,
            username=args.username,
            email=args.email,
            password=args.password,
            department=args.department,
            specialty=args.specialty,
        )
    except SchemaValidationError as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 1

    await init_models(engine)

    async with AsyncSessionLocal() as session:
        try:
            if args.kind == "administrator":
                user = await staff_service.create_administrator(session, data)
            else:
                user = await staff_service.create_instructor(session, data)
            await session.commit()
        except IdentityAPIError as exc:
            await session.rollback()
            print(exc.detail, file=sys.stderr)
            return 1

    roles = ", ".join(sorted(role.name.value for role in user.roles))
    print(f"Created {args.kind} '{user.username}' (id={user.id}) with roles {roles}.")
    return 0


async def run(args: argparse.Namespace) -> int:
    try:
        return await create(args)
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Provision an administrator or instructor.")
    parser.add_argument("username")
    parser.add_argument("email")
    parser.add_argument("password", help="At least 8 characters")
    parser.add_argument("--kind", default="administrator", choices=["administrator", "instructor"])
    parser.add_argument("--full-name", default=None)
    parser.add_argument("--department", default=None, help="Administrators only")
    parser.add_argument("--specialty", default=None, help="Instructors only")
    args = parser.parse_args()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
