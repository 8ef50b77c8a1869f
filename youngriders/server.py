from __future__ import annotations
import logging
import os
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Form, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, ORJSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
from starlette.status import HTTP_303_SEE_OTHER

from . import cart, config
from .api import admin, albums, catalog, orders, rides, site
from .deps import get_db, is_admin
from .helpers import ct_equal
from .model.db import Database
from .model.errors import StoreError
from .model.orders import STATUSES, group_for_print
from .model.rides import FEATURED_RIDES
from .model.catalog import FEATURED_PRODUCTS
from .permissions import PERMISSION_IDS

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

HERE = os.path.dirname(os.path.abspath(__file__))
templates = Jinja2Templates(directory=os.path.join(HERE, "templates"))

# top-level paths the site gate never redirects
UNGATED_PREFIXES = ("/api", "/static", "/uploads", "/admin", "/maintenance",
                    "/shop-closed")

app = FastAPI(
    title="Young Riders Oost",
    default_response_class=ORJSONResponse,
)
app.mount("/static", StaticFiles(directory=os.path.join(HERE, "static")),
          name="static")
app.mount("/uploads",
          StaticFiles(directory=config.UPLOAD_DIR, check_dir=False),
          name="uploads")

for module in (rides, albums, orders, catalog, admin, site):
    app.include_router(module.router)


# ----------------------------
# Site gate (maintenance / shop closed)
# ----------------------------
@app.middleware("http")
async def site_gate(request: Request, call_next):
    path = request.url.path
    if path.startswith(UNGATED_PREFIXES):
        return await call_next(request)

    # read fresh: an admin toggle takes effect on the next request
    current = await request.app.state.db.site_config.get()
    bypass = request.cookies.get(config.MAINTENANCE_BYPASS_COOKIE) == "true"
    if current["maintenanceMode"] and not bypass and not is_admin(request):
        return RedirectResponse(url="/maintenance",
                                status_code=HTTP_303_SEE_OTHER)
    if current["shopClosed"]:
        return RedirectResponse(url="/shop-closed",
                                status_code=HTTP_303_SEE_OTHER)
    return await call_next(request)


# added last so it wraps the gate, which needs the session
app.add_middleware(SessionMiddleware, secret_key=config.SESSION_SECRET)


# ----------------------------
# Errors -> {"error": ...}
# ----------------------------
@app.exception_handler(StoreError)
async def _store_error(request: Request, exc: StoreError):
    return ORJSONResponse({"error": exc.message},
                          status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException):
    return ORJSONResponse({"error": exc.detail}, status_code=exc.status_code,
                          headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg") if errors else "invalid request"
    return ORJSONResponse({"error": message}, status_code=400)


@app.exception_handler(Exception)
async def _unexpected_error(request: Request, exc: Exception):
    logger.error("unhandled error on %s %s", request.method,
                 request.url.path, exc_info=exc)
    return ORJSONResponse({"error": "Internal server error"},
                          status_code=500)


# ---
# startup
# ---
@app.on_event("startup")
async def _say_hello():
    logger.info("=" * 50)
    logger.info("%s is starting up...", config.SITE_NAME)
    logger.info("   - data directory:   %s", os.path.abspath(config.DATA_DIR))
    logger.info("   - upload directory: %s",
                os.path.abspath(config.UPLOAD_DIR))
    logger.info("=" * 50)


@app.on_event("startup")
async def _db_init():
    db = Database(config.DATA_DIR)
    db.ensure()
    app.state.db = db
    app.state.upload_dir = config.UPLOAD_DIR
    if await db.users.count() == 0:
        await db.users.create_user({
            "username": config.ADMIN_USERNAME,
            "password": config.ADMIN_PASSWORD,
            "name": "Beheerder",
            "permissions": PERMISSION_IDS,
        })
        logger.info("bootstrap admin %r created", config.ADMIN_USERNAME)


# ----------------------------
# Helpers
# ----------------------------
async def render(request: Request, name: str,
                 context: Optional[Dict[str, Any]] = None,
                 status_code: int = 200):
    db: Database = request.app.state.db
    ctx = {
        "site_name": config.SITE_NAME,
        "site": await db.site_config.get(),
        "cart_count": cart.totals(cart.get_items(request.session))[
            "total_items"],
        "is_admin": is_admin(request),
        **(context or {}),
    }
    return templates.TemplateResponse(request, name, ctx,
                                      status_code=status_code)


def see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=HTTP_303_SEE_OTHER)


def login_redirect(request: Request) -> RedirectResponse:
    # preserve where we wanted to go
    dest = request.url.path
    return RedirectResponse(url=f"/admin/login?next={dest}", status_code=307)


def hoodie_colors():
    return [{"slug": slug, "name": name}
            for slug, name in config.HOODIE_COLORS.items()]


# ----------------------------
# Storefront pages
# ----------------------------
@app.get("/", response_class=HTMLResponse)
async def home_page(request: Request, db: Database = Depends(get_db)):
    return await render(request, "home.html", {
        "rides": await db.rides.upcoming_rides(limit=FEATURED_RIDES),
        "products": await db.products.featured(limit=FEATURED_PRODUCTS),
        "colors": hoodie_colors(),
    })


@app.get("/webshop", response_class=HTMLResponse)
async def webshop_page(request: Request, db: Database = Depends(get_db)):
    return await render(request, "webshop.html", {
        "colors": hoodie_colors(),
        "price": config.HOODIE_PRICE,
        "categories": await db.categories.list_active(),
        "products": await db.products.list_active(),
    })


@app.get("/product/{slug}", response_class=HTMLResponse)
async def product_page(request: Request, slug: str,
                       db: Database = Depends(get_db)):
    if slug in config.HOODIE_COLORS:
        return await render(request, "hoodie.html", {
            "color": slug,
            "color_name": config.HOODIE_COLORS[slug],
            "sizes": config.SIZES,
            "price": config.HOODIE_PRICE,
            "shipping_cost": config.SHIPPING_COST,
        })
    product = await db.products.get_by_slug(slug)
    if product is None or not product.get("active"):
        raise HTTPException(404, detail="product not found")
    return await render(request, "product.html", {"product": product})


@app.get("/cart", response_class=HTMLResponse)
async def cart_page(request: Request, error: Optional[str] = None):
    items = cart.get_items(request.session)
    return await render(request, "cart.html", {
        "items": items,
        "totals": cart.totals(items),
        "error": error,
    })


@app.post("/cart/add")
async def cart_add(
    request: Request,
    color: str = Form(...),
    size: str = Form(...),
    quantity: int = Form(1),
    delivery: str = Form("pickup"),
):
    try:
        item = cart.make_item(color, size, quantity, delivery)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))
    cart.add_item(request.session, item)
    return see_other("/cart")


@app.post("/cart/update")
async def cart_update(request: Request, item_id: str = Form(...),
                      quantity: int = Form(...)):
    cart.update_quantity(request.session, item_id, quantity)
    return see_other("/cart")


@app.post("/cart/remove")
async def cart_remove(request: Request, item_id: str = Form(...)):
    cart.remove_item(request.session, item_id)
    return see_other("/cart")


@app.get("/checkout", response_class=HTMLResponse)
async def checkout_page(request: Request):
    items = cart.get_items(request.session)
    if not items:
        return see_other("/cart?error=empty")
    return await render(request, "checkout.html", {
        "items": items,
        "totals": cart.totals(items),
        "form": {},
        "error": None,
    })


@app.post("/checkout", response_class=HTMLResponse)
async def checkout_submit(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    street: str = Form(""),
    house_number: str = Form(""),
    postal_code: str = Form(""),
    city: str = Form(""),
    notes: str = Form(""),
    db: Database = Depends(get_db),
):
    items = cart.get_items(request.session)
    if not items:
        return see_other("/cart?error=empty")

    form = {"name": name.strip(), "email": email.strip(),
            "phone": phone.strip(), "street": street.strip(),
            "house_number": house_number.strip(),
            "postal_code": postal_code.strip(), "city": city.strip(),
            "notes": notes.strip()}
    needs_address = any(i["delivery"] == "shipping" for i in items)
    required = ["name", "email", "phone"]
    if needs_address:
        required += ["street", "house_number", "postal_code", "city"]
    missing = [f for f in required if not form[f]]
    if missing:
        return await render(request, "checkout.html", {
            "items": items,
            "totals": cart.totals(items),
            "form": form,
            "error": "Vul alle verplichte velden in.",
        }, status_code=400)

    address = (f"{form['street']} {form['house_number']}, "
               f"{form['postal_code']} {form['city']}")
    lines = [
        {
            "name": form["name"],
            "email": form["email"],
            "phone": form["phone"],
            "address": address if item["delivery"] == "shipping"
            else "Ophalen",
            "color": item["color"],
            "size": item["size"],
            "quantity": item["quantity"],
            "delivery": item["delivery"],
            "notes": form["notes"],
            "price": item["price"] + item["shippingCost"],
        }
        for item in items
    ]
    created = await db.orders.add_orders(lines)
    order_id = created[0]["orderId"]
    cart.clear(request.session)
    return see_other(f"/order-confirmation/{order_id}")


@app.get("/order-confirmation/{order_id}", response_class=HTMLResponse)
async def order_confirmation_page(request: Request, order_id: str,
                                  db: Database = Depends(get_db)):
    lines = await db.orders.by_order_id(order_id)
    if not lines:
        raise HTTPException(404, detail="order not found")
    return await render(request, "order_confirmation.html", {
        "order_id": order_id,
        "lines": lines,
        "total": sum(float(line["price"]) * int(line.get("quantity") or 1)
                     for line in lines),
    })


@app.get("/order-status", response_class=HTMLResponse)
async def order_lookup_page(request: Request, orderId: Optional[str] = None):
    if orderId:
        return see_other(f"/order-status/{orderId.strip().upper()}")
    return await render(request, "order_status.html",
                        {"order_id": None, "lines": []})


@app.get("/order-status/{order_id}", response_class=HTMLResponse)
async def order_status_page(request: Request, order_id: str,
                            db: Database = Depends(get_db)):
    lines = await db.orders.by_order_id(order_id)
    return await render(request, "order_status.html", {
        "order_id": order_id,
        "lines": lines,
    }, status_code=200 if lines else 404)


@app.get("/rides", response_class=HTMLResponse)
async def rides_page(request: Request, registered: Optional[str] = None,
                     db: Database = Depends(get_db)):
    return await render(request, "rides.html", {
        "rides": await db.rides.active_rides(),
        "registered": registered,
        "error": None,
        "error_ride": None,
    })


@app.post("/rides/{ride_id}/register", response_class=HTMLResponse)
async def rides_register(request: Request, ride_id: str,
                         db: Database = Depends(get_db)):
    form = await request.form()
    data = {k: str(v).strip() for k, v in form.items()}
    try:
        await db.rides.register(ride_id, data)
    except StoreError as e:
        return await render(request, "rides.html", {
            "rides": await db.rides.active_rides(),
            "registered": None,
            "error": e.message,
            "error_ride": ride_id,
        }, status_code=e.status_code)
    return see_other(f"/rides?registered={ride_id}")


@app.get("/gallery", response_class=HTMLResponse)
async def gallery_page(request: Request, db: Database = Depends(get_db)):
    return await render(request, "gallery.html", {
        "albums": await db.albums.list_albums(),
    })


@app.get("/album/{album_id}", response_class=HTMLResponse)
async def album_page(request: Request, album_id: str,
                     db: Database = Depends(get_db)):
    album = await db.albums.get_album(album_id)
    if album is None:
        raise HTTPException(404, detail="album not found")
    return await render(request, "album.html", {"album": album})


@app.get("/contact", response_class=HTMLResponse)
async def contact_page(request: Request):
    return await render(request, "contact.html")


@app.get("/maintenance", response_class=HTMLResponse)
async def maintenance_page(request: Request, db: Database = Depends(get_db)):
    if not (await db.site_config.get())["maintenanceMode"]:
        return see_other("/")
    return await render(request, "maintenance.html", {"error": None})


@app.post("/maintenance", response_class=HTMLResponse)
async def maintenance_unlock(request: Request, password: str = Form(""),
                             db: Database = Depends(get_db)):
    current = await db.site_config.get()
    if not ct_equal(password, current["maintenancePassword"]):
        return await render(request, "maintenance.html",
                            {"error": "Onjuist wachtwoord."},
                            status_code=401)
    response = see_other("/")
    response.set_cookie(
        config.MAINTENANCE_BYPASS_COOKIE, "true",
        max_age=config.MAINTENANCE_BYPASS_MAX_AGE,
        httponly=True, samesite="strict",
    )
    return response


@app.get("/shop-closed", response_class=HTMLResponse)
async def shop_closed_page(request: Request, db: Database = Depends(get_db)):
    if not (await db.site_config.get())["shopClosed"]:
        return see_other("/")
    return await render(request, "shop_closed.html")


# ----------------------------
# Admin pages
# ----------------------------
@app.get("/admin/login", response_class=HTMLResponse)
async def admin_login_get(request: Request, next: str | None = "/admin"):
    return await render(request, "admin/login.html",
                        {"next": next, "error": None})


@app.post("/admin/login", response_class=HTMLResponse)
async def admin_login_post(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    next: str = Form("/admin"),
    db: Database = Depends(get_db),
):
    user = await db.users.verify(username.strip(), password)
    if user is not None:
        request.session["admin_user"] = user["username"]
        # only local redirects
        local = next and next.startswith("/") \
            and not next.startswith(("//", "/\\"))
        dest = next if local else "/admin"
        return see_other(dest)
    # auth failed
    return await render(request, "admin/login.html",
                        {"next": next, "error": "Invalid credentials."},
                        status_code=401)


@app.get("/admin/logout")
async def admin_logout(request: Request):
    request.session.pop("admin_user", None)
    return see_other("/")


@app.get("/admin", response_class=HTMLResponse)
async def admin_page(request: Request, db: Database = Depends(get_db)):
    if not is_admin(request):
        return login_redirect(request)
    rides_list = await db.rides.list_rides()
    return await render(request, "admin/dashboard.html", {
        "counts": await db.orders.status_counts(),
        "recent": await db.orders.recent(10),
        "upcoming": await db.rides.upcoming_rides(limit=5),
        "ride_count": len(rides_list),
        "participant_count": sum(int(r.get("registered") or 0)
                                 for r in rides_list),
    })


@app.get("/admin/orders", response_class=HTMLResponse)
async def admin_orders_page(request: Request, status: str = "all",
                            db: Database = Depends(get_db)):
    if not is_admin(request):
        return login_redirect(request)
    return await render(request, "admin/orders.html", {
        "orders": await db.orders.list_orders(status),
        "counts": await db.orders.status_counts(),
        "statuses": STATUSES,
        "status": status,
    })


@app.get("/admin/orders/print", response_class=HTMLResponse)
async def admin_print_page(request: Request, status: str = "betaald",
                           db: Database = Depends(get_db)):
    if not is_admin(request):
        return login_redirect(request)
    return await render(request, "admin/print.html", {
        "summary": group_for_print(await db.orders.list_orders(), status),
        "statuses": STATUSES,
    })


@app.get("/admin/rides", response_class=HTMLResponse)
async def admin_rides_page(request: Request,
                           db: Database = Depends(get_db)):
    if not is_admin(request):
        return login_redirect(request)
    return await render(request, "admin/rides.html", {
        "rides": await db.rides.list_rides(),
    })


@app.get("/admin/rides/{ride_id}/participants", response_class=HTMLResponse)
async def admin_participants_page(request: Request, ride_id: str,
                                  db: Database = Depends(get_db)):
    if not is_admin(request):
        return login_redirect(request)
    ride = await db.rides.get_ride(ride_id)
    if ride is None:
        raise HTTPException(404, detail="ride not found")
    return await render(request, "admin/participants.html", {
        "ride": ride,
        "participants": await db.participants.by_ride(ride_id),
    })
