"""
Steps of the order creation workflow.

Every step reads from and writes to a shared ctx dict:
  in:  db, client, user_id, product_ids
  out: total_amount (after pricing), order (after persisting)
"""
from .clients import resolve_total_price, validate_user
from .errors import BadRequest
from .repository import OrderRepository
from .workflow import OrderWorkflow, WorkflowState

# --- ACTIONS ---

async def check_request(ctx: dict):
    user_id, product_ids = ctx.get("user_id"), ctx.get("product_ids")
    if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
        raise BadRequest("Invalid User ID")
    if not product_ids:
        raise BadRequest("Order request is invalid or has no products.")
    for pid in product_ids:
        if not isinstance(pid, int) or isinstance(pid, bool) or pid <= 0:
            raise BadRequest(f"Invalid product ID {pid!r}")

async def confirm_user(ctx: dict):
    await validate_user(ctx["client"], ctx["user_id"])

async def price_products(ctx: dict):
    ctx["total_amount"] = await resolve_total_price(ctx["client"], ctx["product_ids"])

async def persist_order(ctx: dict):
    ctx["order"] = await OrderRepository.create_with_items(
        ctx["db"], ctx["user_id"], ctx["total_amount"], ctx["product_ids"]
    )


# --- BUILDER FACTORY ---

def build_order_workflow() -> OrderWorkflow:
    workflow = OrderWorkflow()
    workflow.add_step(WorkflowState.RECEIVED, "check_request", check_request)
    workflow.add_step(WorkflowState.VALIDATING, "confirm_user", confirm_user)
    workflow.add_step(WorkflowState.PRICING, "price_products", price_products)
    workflow.add_step(WorkflowState.PERSISTING, "persist_order", persist_order)
    return workflow
