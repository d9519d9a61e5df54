"""Credit ledger CLI commands for operators."""

import asyncio
import uuid

import typer

from alset_api.models.credit import CreditActionType

credits_app = typer.Typer()

_GRANTABLE_ACTIONS = (CreditActionType.BONUS, CreditActionType.PURCHASE, CreditActionType.SUBSCRIPTION)


@credits_app.command("grant")
def grant(
    user_id: str = typer.Argument(..., help="Auth provider user id"),
    amount: int = typer.Argument(..., min=1, help="Credits to add"),
    action: str = typer.Option(CreditActionType.BONUS.value, "--action", help="bonus, purchase, or subscription"),
    description: str | None = typer.Option(None, "--description", help="Ledger description"),
) -> None:
    """Add credits to a user's account."""
    try:
        action_type = CreditActionType(action)
    except ValueError as e:
        typer.echo(f"Error: unknown action {action!r}", err=True)
        raise typer.Exit(code=1) from e
    if action_type not in _GRANTABLE_ACTIONS:
        typer.echo(f"Error: credits cannot be granted as {action!r}", err=True)
        raise typer.Exit(code=1)
    asyncio.run(_grant(user_id, amount, action_type, description))


@credits_app.command("balance")
def balance(
    user_id: str = typer.Argument(..., help="Auth provider user id"),
) -> None:
    """Show a user's credit balance."""
    asyncio.run(_balance(user_id))


@credits_app.command("refund")
def refund(
    user_id: str = typer.Argument(..., help="Auth provider user id"),
    transaction_id: str = typer.Argument(..., help="Id of the consumption to refund"),
    reason: str | None = typer.Option(None, "--reason", help="Stored as the refund description"),
) -> None:
    """Refund a credit consumption in full. Each consumption can be refunded once."""
    try:
        parsed_id = uuid.UUID(transaction_id)
    except ValueError as e:
        typer.echo(f"Error: {transaction_id!r} is not a transaction id", err=True)
        raise typer.Exit(code=1) from e
    asyncio.run(_refund(user_id, parsed_id, reason))


async def _grant(user_id: str, amount: int, action_type: CreditActionType, description: str | None) -> None:
    from alset_api.core.config import get_settings
    from alset_api.core.database import dispose_engine, init_engine, session_scope
    from alset_api.services.credit_service import add_credits

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        async with session_scope() as session:
            transaction = await add_credits(session, user_id, amount, action_type, description=description)
            typer.echo(f"Granted {amount} credits to {user_id}. New balance: {transaction.balance_after}")
    finally:
        await dispose_engine()


async def _balance(user_id: str) -> None:
    from alset_api.core.config import get_settings
    from alset_api.core.database import dispose_engine, init_engine, session_scope
    from alset_api.services.credit_service import get_balance

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        async with session_scope() as session:
            account = await get_balance(session, user_id)
            if account is None:
                typer.echo(f"{user_id}: no credit account")
                return
            typer.echo(f"{user_id}: {account.balance} credits")
            typer.echo(f"  Earned: {account.total_earned}")
            typer.echo(f"  Spent:  {account.total_spent}")
    finally:
        await dispose_engine()


async def _refund(user_id: str, transaction_id: uuid.UUID, reason: str | None) -> None:
    from alset_api.core.config import get_settings
    from alset_api.core.database import dispose_engine, init_engine, session_scope
    from alset_api.services.credit_service import CreditTransactionNotFoundError, refund_credits

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        async with session_scope() as session:
            try:
                transaction = await refund_credits(session, user_id, transaction_id, reason=reason)
            except (CreditTransactionNotFoundError, ValueError) as e:
                typer.echo(f"Error: {e}", err=True)
                raise typer.Exit(code=1) from e
            typer.echo(
                f"Refunded {transaction.credits_added} credits to {user_id}. New balance: {transaction.balance_after}"
            )
    finally:
        await dispose_engine()
