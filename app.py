from functools import wraps
import logging

from flask import Flask, current_app, g, jsonify, make_response, request

from config.settings import configure_logging, load_settings
from errors import NotFoundError, PlannerError, ValidationError
from event_templates import get_template_options
from events import EventService
from expenses import VALID_CATEGORIES, ExpenseService
from identity import FirebaseIdentityProvider, bearer_token
from invitations import InvitationService
from itinerary import ItineraryService
from meals import MealService
from participants import MemberService, require_permission
from profiles import ProfileService
from report import render_event_report
from store import FirebaseStore, MemoryStore

logger = logging.getLogger(__name__)


# ------------------ SETUP ------------------

def build_store(settings):
    if settings.store_backend == "memory":
        logger.warning("Using in-memory store; data is lost on restart")
        return MemoryStore()

    from config.firebase_config import get_firebase_app
    return FirebaseStore(get_firebase_app(settings))


def build_identity(settings):
    if settings.store_backend == "memory":
        # no Firebase app exists to verify tokens against
        raise RuntimeError("STORE_BACKEND=memory requires an identity provider passed to create_app")

    from config.firebase_config import get_firebase_app
    return FirebaseIdentityProvider(get_firebase_app(settings))


def create_app(settings=None, store=None, identity=None):
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = Flask(__name__)
    app.extensions["planner"] = {
        "settings": settings,
        "store": store if store is not None else build_store(settings),
        "identity": identity if identity is not None else build_identity(settings),
    }

    @app.errorhandler(PlannerError)
    def handle_planner_error(error):
        if error.status_code >= 500:
            logger.error("%s: %s", type(error).__name__, error.message)
        return jsonify(error.to_dict()), error.status_code

    register_routes(app)
    return app


# ------------------ HELPERS ------------------

def _planner():
    return current_app.extensions["planner"]


def _store():
    return _planner()["store"]


def _body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = bearer_token(request.headers.get("Authorization"))
        g.user = _planner()["identity"].verify(token)
        return view(*args, **kwargs)
    return wrapper


def _require(event_id, permission):
    require_permission(_store(), event_id, g.user.uid, permission)


# ------------------ ROUTES ------------------

def register_routes(app):

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/templates")
    def templates():
        return jsonify({"templates": get_template_options(), "categories": VALID_CATEGORIES})

    # ------------------ PROFILE ------------------

    @app.route("/me", methods=["GET", "POST"])
    @login_required
    def me():
        profiles = ProfileService(_store())
        if request.method == "POST":
            return jsonify(profiles.ensure_profile(g.user))
        profile = profiles.get_profile(g.user.uid)
        if profile is None:
            raise NotFoundError("Profile not found")
        return jsonify(profile)

    @app.route("/me/preferences", methods=["PUT"])
    @login_required
    def preferences():
        return jsonify(ProfileService(_store()).update_preferences(g.user.uid, _body()))

    # ------------------ EVENTS ------------------

    @app.route("/events", methods=["GET"])
    @login_required
    def list_events():
        return jsonify(EventService(_store()).get_user_events(g.user.uid))

    @app.route("/events", methods=["POST"])
    @login_required
    def create_event():
        data = _body()
        result = EventService(_store()).create_event(data, g.user, template=data.get("template"))
        return jsonify(result), 201

    @app.route("/events/<event_id>", methods=["GET"])
    @login_required
    def get_event(event_id):
        _require(event_id, "read")
        return jsonify(EventService(_store()).get_event(event_id))

    @app.route("/events/<event_id>", methods=["PATCH"])
    @login_required
    def update_event(event_id):
        return jsonify(EventService(_store()).update_event(event_id, _body(), g.user))

    @app.route("/events/<event_id>", methods=["DELETE"])
    @login_required
    def delete_event(event_id):
        EventService(_store()).delete_event(event_id, g.user)
        return "", 204

    # ------------------ MEMBERS ------------------

    @app.route("/events/<event_id>/members", methods=["GET"])
    @login_required
    def list_members(event_id):
        _require(event_id, "read")
        return jsonify(MemberService(_store(), event_id).get_members())

    @app.route("/events/<event_id>/members", methods=["POST"])
    @login_required
    def add_guest(event_id):
        data = _body()
        guest = MemberService(_store(), event_id).add_guest(
            data.get("name"), g.user.uid, email=data.get("email"), role=data.get("role") or "member")
        return jsonify(guest), 201

    @app.route("/events/<event_id>/members/<member_id>", methods=["PATCH"])
    @login_required
    def update_member_role(event_id, member_id):
        members = MemberService(_store(), event_id)
        return jsonify(members.update_role(member_id, _body().get("role"), g.user.uid))

    @app.route("/events/<event_id>/members/<member_id>", methods=["DELETE"])
    @login_required
    def remove_member(event_id, member_id):
        MemberService(_store(), event_id).remove_member(member_id, g.user.uid)
        return "", 204

    # ------------------ INVITATIONS ------------------

    def invitation_service():
        return InvitationService(_store(), _planner()["settings"].invitation_ttl_days)

    @app.route("/invitations", methods=["GET"])
    @login_required
    def my_invitations():
        return jsonify(invitation_service().get_user_pending_invitations(g.user.email))

    @app.route("/events/<event_id>/invitations", methods=["GET"])
    @login_required
    def list_invitations(event_id):
        _require(event_id, "read")
        return jsonify(invitation_service().get_event_invitations(event_id))

    @app.route("/events/<event_id>/invitations", methods=["POST"])
    @login_required
    def invite(event_id):
        data = _body()
        invitation = invitation_service().invite_guest(
            event_id, data.get("email"), g.user.uid, role=data.get("role") or "member")
        return jsonify(invitation), 201

    @app.route("/events/<event_id>/invitations/<invitation_id>/accept", methods=["POST"])
    @login_required
    def accept_invitation(event_id, invitation_id):
        return jsonify(invitation_service().accept_invitation(event_id, invitation_id, g.user))

    @app.route("/events/<event_id>/invitations/<invitation_id>/decline", methods=["POST"])
    @login_required
    def decline_invitation(event_id, invitation_id):
        service = invitation_service()
        invitation = service.get_invitation(event_id, invitation_id)
        if invitation and invitation.get("email") != (g.user.email or "").lower().strip():
            _require(event_id, "invite")
        service.decline_invitation(event_id, invitation_id)
        return "", 204

    @app.route("/events/<event_id>/invitations/<invitation_id>", methods=["DELETE"])
    @login_required
    def cancel_invitation(event_id, invitation_id):
        invitation_service().cancel_invitation(event_id, invitation_id, g.user.uid)
        return "", 204

    # ------------------ EXPENSES ------------------

    @app.route("/events/<event_id>/expenses", methods=["GET"])
    @login_required
    def list_expenses(event_id):
        _require(event_id, "read")
        return jsonify(ExpenseService(_store(), event_id).get_expenses())

    @app.route("/events/<event_id>/expenses", methods=["POST"])
    @login_required
    def add_expense(event_id):
        _require(event_id, "write")
        expense = ExpenseService(_store(), event_id).create_expense(_body(), g.user.uid)
        return jsonify(expense), 201

    @app.route("/events/<event_id>/expenses/summary", methods=["GET"])
    @login_required
    def expense_summary(event_id):
        _require(event_id, "read")
        members = MemberService(_store(), event_id).get_members()
        return jsonify(ExpenseService(_store(), event_id).get_summary(members))

    @app.route("/events/<event_id>/expenses/<expense_id>", methods=["GET"])
    @login_required
    def get_expense(event_id, expense_id):
        _require(event_id, "read")
        expense = ExpenseService(_store(), event_id).get_expense(expense_id)
        if expense is None:
            raise NotFoundError("Expense not found")
        return jsonify(expense)

    @app.route("/events/<event_id>/expenses/<expense_id>", methods=["PUT"])
    @login_required
    def update_expense(event_id, expense_id):
        _require(event_id, "write")
        return jsonify(ExpenseService(_store(), event_id).update_expense(expense_id, _body(), g.user.uid))

    @app.route("/events/<event_id>/expenses/<expense_id>", methods=["DELETE"])
    @login_required
    def delete_expense(event_id, expense_id):
        _require(event_id, "write")
        ExpenseService(_store(), event_id).delete_expense(expense_id, g.user.uid)
        return "", 204

    # ------------------ MEALS ------------------

    @app.route("/events/<event_id>/meals", methods=["GET"])
    @login_required
    def list_meals(event_id):
        _require(event_id, "read")
        return jsonify(MealService(_store(), event_id).get_meals())

    @app.route("/events/<event_id>/meals", methods=["POST"])
    @login_required
    def add_meal(event_id):
        _require(event_id, "write")
        return jsonify(MealService(_store(), event_id).create_meal(_body(), g.user.uid)), 201

    @app.route("/events/<event_id>/meals/<meal_id>", methods=["PUT"])
    @login_required
    def update_meal(event_id, meal_id):
        _require(event_id, "write")
        return jsonify(MealService(_store(), event_id).update_meal(meal_id, _body(), g.user.uid))

    @app.route("/events/<event_id>/meals/<meal_id>", methods=["DELETE"])
    @login_required
    def delete_meal(event_id, meal_id):
        _require(event_id, "write")
        MealService(_store(), event_id).delete_meal(meal_id, g.user.uid)
        return "", 204

    # ------------------ ITINERARY ------------------

    @app.route("/events/<event_id>/itinerary", methods=["GET"])
    @login_required
    def get_itinerary(event_id):
        _require(event_id, "read")
        return jsonify(ItineraryService(_store()).get_itinerary(event_id))

    @app.route("/events/<event_id>/itinerary/<field>", methods=["PUT"])
    @login_required
    def update_itinerary(event_id, field):
        _require(event_id, "write")
        ItineraryService(_store()).update_itinerary_field(event_id, field, _body().get("value"))
        return "", 204

    # ------------------ PDF EXPORT ------------------

    @app.route("/events/<event_id>/report.pdf")
    @login_required
    def export_pdf(event_id):
        _require(event_id, "read")
        event = EventService(_store()).get_event(event_id)
        expenses = ExpenseService(_store(), event_id).get_expenses()
        members = MemberService(_store(), event_id).get_members()

        pdf = render_event_report(event, expenses, members, _planner()["settings"].default_currency)

        name = (event.get("metadata") or {}).get("name") or "event"
        response = make_response(pdf)
        response.headers["Content-Type"] = "application/pdf"
        response.headers["Content-Disposition"] = f'attachment; filename={name.replace(" ", "_")}_report.pdf'
        return response


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000)
