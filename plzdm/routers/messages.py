"""Welcome-message routes — create a message on the user's linked X account."""

import logging

from fastapi import APIRouter, Depends

from plzdm.config import get_settings
from plzdm.dependencies import get_dispatcher, get_entitlement_resolver, get_record_store
from plzdm.errors import MissingCredentialsError
from plzdm.models.user import User
from plzdm.schemas.messages import LinkedAccount, WelcomeMessageForm
from plzdm.services.auth_service import get_current_user
from plzdm.services.dispatch_client import WelcomeMessageDispatcher
from plzdm.services.entitlement import EntitlementResolver
from plzdm.services.message_assembler import assemble_message, branded_cta_from_settings
from plzdm.services.record_store import RecordStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/twitter", tags=["twitter"])


@router.post("/welcome-messages/new")
async def create_welcome_message(
    form: WelcomeMessageForm,
    user: User = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver),
    dispatcher: WelcomeMessageDispatcher = Depends(get_dispatcher),
):
    settings = get_settings()

    entitled = await resolver.is_entitled(user.id)
    payload = assemble_message(
        form,
        entitled,
        branded_cta=branded_cta_from_settings(settings),
        gate_ctas=settings.gate_ctas_on_entitlement,
        unentitled_mode=settings.unentitled_cta_mode,
    )

    credentials = await store.latest_credentials(user.id)
    if not credentials:
        raise MissingCredentialsError("You don't have a Twitter account linked yet.")

    messages = await dispatcher.dispatch(credentials, payload, credentials.account_handle)
    return {"messages": messages}


@router.get("/accounts", response_model=list[LinkedAccount])
async def list_linked_accounts(
    user: User = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
):
    rows = await store.list_twitter_tokens(user.id)
    return [LinkedAccount(twitter_user_id=r.twitter_user_id, user_name=r.user_name) for r in rows]
