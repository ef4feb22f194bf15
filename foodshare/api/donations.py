"""Donation routes: create, list mine, get one, and lifecycle transitions."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status

from foodshare.api.errors import to_http
from foodshare.deps import get_clock, get_current_actor, get_state_machine, get_store
from foodshare.models.actor import Actor, Role
from foodshare.models.donation import Donation, DonationStatus
from foodshare.schemas.donation import DonationCreate, DonationResponse
from foodshare.services.clock import Clock
from foodshare.services.errors import DonationError
from foodshare.services.state_machine import Event, LifecycleStateMachine, allowed_events
from foodshare.services.store import DonationFilter, Store
from foodshare.services.urgency import score_donation

router = APIRouter(prefix="/donations", tags=["donations"])


def donation_to_response(
    donation: Donation, now: datetime, actor: Actor | None = None, urgency: int | None = None
) -> DonationResponse:
    """`urgency` reuses a score already computed for this response instead of rescoring at `now`."""
    return DonationResponse(
        id=donation.id,
        donor_id=donation.donor_id,
        title=donation.title,
        description=donation.description,
        food_category=donation.food_category,
        quantity=donation.quantity,
        latitude=donation.latitude,
        longitude=donation.longitude,
        perishability_minutes=donation.perishability_minutes,
        status=donation.status,
        urgency_score=score_donation(donation, now) if urgency is None else urgency,
        accepted_by=donation.accepted_by,
        created_at=donation.created_at,
        accepted_at=donation.accepted_at,
        picked_up_at=donation.picked_up_at,
        delivered_at=donation.delivered_at,
        completed_at=donation.completed_at,
        expired_at=donation.expired_at,
        allowed_events=[e.value for e in allowed_events(donation, actor)] if actor is not None else [],
    )


@router.post("", response_model=DonationResponse, status_code=status.HTTP_201_CREATED)
async def create_donation(
    body: DonationCreate,
    store: Store = Depends(get_store),
    clock: Clock = Depends(get_clock),
    current_actor: Actor = Depends(get_current_actor),
):
    """Offer surplus food. Donors only; starts Available."""
    if current_actor.role != Role.DONOR:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only donors can create donations")
    now = clock.now()
    donation = Donation(
        donor_id=current_actor.id,
        title=body.title.strip(),
        description=body.description,
        food_category=body.food_category,
        quantity=body.quantity,
        latitude=body.latitude,
        longitude=body.longitude,
        perishability_minutes=body.perishability_minutes,
        status=DonationStatus.AVAILABLE,
        created_at=now,
    )
    donation = await store.add_donation(donation)
    return donation_to_response(donation, now, current_actor)


@router.get("/me", response_model=list[DonationResponse])
async def list_my_donations(
    store: Store = Depends(get_store),
    clock: Clock = Depends(get_clock),
    current_actor: Actor = Depends(get_current_actor),
):
    """Donors see what they offered, NGOs/volunteers what they accepted, admins everything."""
    if current_actor.role == Role.DONOR:
        flt = DonationFilter(donor_id=current_actor.id)
    elif current_actor.role == Role.ADMIN:
        flt = DonationFilter()
    else:
        flt = DonationFilter(accepted_by=current_actor.id)
    now = clock.now()
    return [donation_to_response(d, now, current_actor) for d in await store.fetch(flt)]


@router.get("/{donation_id}", response_model=DonationResponse)
async def get_donation(
    donation_id: int,
    store: Store = Depends(get_store),
    clock: Clock = Depends(get_clock),
    current_actor: Actor = Depends(get_current_actor),
):
    donation = await store.fetch_one(donation_id)
    if donation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Donation not found")
    return donation_to_response(donation, clock.now(), current_actor)


async def _do_transition(
    donation_id: int,
    event: Event,
    machine: LifecycleStateMachine,
    current_actor: Actor,
):
    try:
        donation = await machine.apply(donation_id, event, current_actor)
    except DonationError as e:
        raise to_http(e)
    if donation is None:
        return None
    return donation_to_response(donation, machine.clock.now(), current_actor)


@router.post("/{donation_id}/accept", response_model=DonationResponse)
async def accept_donation(
    donation_id: int,
    machine: LifecycleStateMachine = Depends(get_state_machine),
    current_actor: Actor = Depends(get_current_actor),
):
    """Available -> Accepted (NGO or volunteer). Notifies the donor."""
    return await _do_transition(donation_id, Event.ACCEPT, machine, current_actor)


@router.post("/{donation_id}/pickup", response_model=DonationResponse)
async def pick_up_donation(
    donation_id: int,
    machine: LifecycleStateMachine = Depends(get_state_machine),
    current_actor: Actor = Depends(get_current_actor),
):
    """Accepted -> PickedUp (accepting actor or admin)."""
    return await _do_transition(donation_id, Event.PICK_UP, machine, current_actor)


@router.post("/{donation_id}/deliver", response_model=DonationResponse)
async def deliver_donation(
    donation_id: int,
    machine: LifecycleStateMachine = Depends(get_state_machine),
    current_actor: Actor = Depends(get_current_actor),
):
    """PickedUp -> Delivered (accepting actor or admin)."""
    return await _do_transition(donation_id, Event.DELIVER, machine, current_actor)


@router.post("/{donation_id}/complete", response_model=DonationResponse)
async def complete_donation(
    donation_id: int,
    machine: LifecycleStateMachine = Depends(get_state_machine),
    current_actor: Actor = Depends(get_current_actor),
):
    """Delivered -> Completed (donor, receiving NGO or admin). Notifies all parties."""
    return await _do_transition(donation_id, Event.COMPLETE, machine, current_actor)


@router.post("/{donation_id}/cancel", response_model=DonationResponse | None)
async def cancel_donation(
    donation_id: int,
    machine: LifecycleStateMachine = Depends(get_state_machine),
    current_actor: Actor = Depends(get_current_actor),
):
    """
    Admin, or the donor while still Available. Expires or removes it depending on
    CANCEL_POLICY; food already picked up can only be removed, by an admin.
    """
    return await _do_transition(donation_id, Event.CANCEL, machine, current_actor)
