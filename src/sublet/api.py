"""
HTTP API for the sublet marketplace.

Thin aiohttp handlers: parse the request, call the Marketplace facade and
serialize the result. Typed core errors are rendered by ``error_middleware``
using each error's stable category and status.
"""

import json
from typing import Any, Dict

from aiohttp import web
from loguru import logger

from .auth.models import Identity
from .auth.permissions import Role
from .errors import InvalidInput, SubletError
from .service import Marketplace


MARKETPLACE = web.AppKey("marketplace", Marketplace)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def _marketplace(request: web.Request) -> Marketplace:
    return request.app[MARKETPLACE]


async def _read_json(request: web.Request) -> Dict[str, Any]:
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidInput("Invalid JSON format") from e
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be an object")
    return data


def _identity(request: web.Request) -> Identity:
    return _marketplace(request).authenticate(request.headers.get("Authorization"))


def _admin(request: web.Request) -> Identity:
    marketplace = _marketplace(request)
    context = marketplace.access.admit(
        request.headers.get("Authorization"),
        marketplace.access.require_roles(Role.ADMIN),
    )
    return context.identity


# ============================================================================
# Auth
# ============================================================================

async def handle_register(request: web.Request) -> web.Response:
    """
    POST /api/auth/register
    Body: {"username": "...", "email": "...", "password": "..."}
    """
    data = await _read_json(request)
    result = _marketplace(request).register(
        str(data.get("username", "")),
        str(data.get("email", "")),
        str(data.get("password", "")),
    )
    logger.info(f"Registered user: {result.account.username}")
    return web.json_response(result.to_dict(), status=201)


async def handle_login(request: web.Request) -> web.Response:
    """
    POST /api/auth/login
    Body: {"emailOrUsername": "...", "password": "..."}
    """
    data = await _read_json(request)
    identifier = data.get("emailOrUsername") or data.get("username") or ""
    result = _marketplace(request).login(str(identifier), str(data.get("password", "")))
    return web.json_response(result.to_dict())


# ============================================================================
# Listings
# ============================================================================

async def handle_search_listings(request: web.Request) -> web.Response:
    """GET /api/listings?startDate=&endDate=&minPrice=&maxPrice=&location=&page=&pageSize="""
    page = _marketplace(request).search_listings(dict(request.query))
    return web.json_response(page.to_dict())


async def handle_create_listing(request: web.Request) -> web.Response:
    identity = _identity(request)
    data = await _read_json(request)
    listing = _marketplace(request).create_listing(identity, data)
    return web.json_response({"success": True, "listing": listing.to_dict()}, status=201)


async def handle_get_listing(request: web.Request) -> web.Response:
    listing = _marketplace(request).get_listing(request.match_info["listing_id"])
    return web.json_response({"listing": listing.to_dict()})


async def handle_update_listing(request: web.Request) -> web.Response:
    identity = _identity(request)
    data = await _read_json(request)
    listing = _marketplace(request).update_listing(identity, request.match_info["listing_id"], data)
    return web.json_response({"success": True, "listing": listing.to_dict()})


async def handle_delete_listing(request: web.Request) -> web.Response:
    identity = _identity(request)
    _marketplace(request).delete_listing(identity, request.match_info["listing_id"])
    return web.json_response({"success": True, "message": "Listing deleted"})


async def handle_listing_tip_total(request: web.Request) -> web.Response:
    marketplace = _marketplace(request)
    listing = marketplace.get_listing(request.match_info["listing_id"])
    total = marketplace.tip_total_for_listing(listing.id)
    return web.json_response({"listingId": listing.id, "total": str(total)})


# ============================================================================
# Tips
# ============================================================================

async def handle_create_tip(request: web.Request) -> web.Response:
    """
    POST /api/tips
    Body: {"listingId": "...", "amount": 10.5, "message": "..."}
    """
    identity = _identity(request)
    data = await _read_json(request)
    tip_id = _marketplace(request).create_tip(
        identity,
        str(data.get("listingId", "")),
        data.get("amount"),
        data.get("message"),
    )
    return web.json_response({"success": True, "tipId": tip_id}, status=201)


async def handle_get_tip(request: web.Request) -> web.Response:
    identity = _identity(request)
    tip = _marketplace(request).get_tip(identity, request.match_info["tip_id"])
    return web.json_response({"tip": tip.to_dict()})


async def handle_complete_tip(request: web.Request) -> web.Response:
    """POST /api/tips/{id}/complete (admin) Body: {"transactionId": "..."}"""
    _admin(request)
    data = await _read_json(request)
    tip = _marketplace(request).complete_tip(
        request.match_info["tip_id"], str(data.get("transactionId") or "")
    )
    return web.json_response({"success": True, "tip": tip.to_dict()})


async def handle_fail_tip(request: web.Request) -> web.Response:
    """POST /api/tips/{id}/fail (admin) Body: {"reason": "..."}"""
    _admin(request)
    data = await _read_json(request) if request.can_read_body else {}
    reason = data.get("reason")
    tip = _marketplace(request).fail_tip(
        request.match_info["tip_id"], str(reason) if reason is not None else None
    )
    return web.json_response({"success": True, "tip": tip.to_dict()})


async def handle_my_tip_total(request: web.Request) -> web.Response:
    identity = _identity(request)
    total = _marketplace(request).tip_total_for_user(identity.id)
    return web.json_response({"userId": identity.id, "total": str(total)})


# ============================================================================
# Admin
# ============================================================================

async def handle_admin_stats(request: web.Request) -> web.Response:
    identity = _identity(request)
    snapshot = _marketplace(request).admin_snapshot(identity)
    return web.json_response(snapshot.to_dict())


# ============================================================================
# Middleware
# ============================================================================

@web.middleware
async def error_middleware(request, handler):
    """Render typed core errors; anything else becomes a logged 500."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except SubletError as e:
        if e.status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
        return web.json_response({"success": False, **e.to_dict()}, status=e.status)
    except Exception:
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return web.json_response(
            {"success": False, "error": "internal_error", "message": "Internal server error"},
            status=500,
        )


@web.middleware
async def cors_middleware(request, handler):
    """Allow browser clients on any origin; OPTIONS preflights are answered directly."""
    response = web.Response() if request.method == "OPTIONS" else await handler(request)
    response.headers.update(CORS_HEADERS)
    return response


def create_app(marketplace: Marketplace) -> web.Application:
    """Build the aiohttp application around a Marketplace."""
    app = web.Application(middlewares=[cors_middleware, error_middleware])
    app[MARKETPLACE] = marketplace

    app.router.add_post("/api/auth/register", handle_register)
    app.router.add_post("/api/auth/login", handle_login)

    app.router.add_get("/api/listings", handle_search_listings)
    app.router.add_post("/api/listings", handle_create_listing)
    app.router.add_get("/api/listings/{listing_id}", handle_get_listing)
    app.router.add_put("/api/listings/{listing_id}", handle_update_listing)
    app.router.add_delete("/api/listings/{listing_id}", handle_delete_listing)
    app.router.add_get("/api/listings/{listing_id}/tips/total", handle_listing_tip_total)

    app.router.add_post("/api/tips", handle_create_tip)
    app.router.add_get("/api/tips/total", handle_my_tip_total)
    app.router.add_get("/api/tips/{tip_id}", handle_get_tip)
    app.router.add_post("/api/tips/{tip_id}/complete", handle_complete_tip)
    app.router.add_post("/api/tips/{tip_id}/fail", handle_fail_tip)

    app.router.add_get("/api/admin/stats", handle_admin_stats)

    return app
