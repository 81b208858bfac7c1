"""
Streamlit Frontend for Family Finance

The household's daily view of money coming in and going out, debts and
possessions.

DESIGN PRINCIPLES:
1. Every page asks the route guard before it renders anything
2. Plan-gated pages never render for a user who is not entitled
3. Every action ends in a toast, success or failure
4. Presentation never sees a backend error, only True/False and lists

DEVELOPMENT ONLY: sign-in is an identity stub. The password is checked
for shape but never verified, and the user id is derived from the email,
so anyone can open any account. Put a real identity provider in front of
this app before it holds real data.
"""

import asyncio
from datetime import date
from decimal import Decimal
from uuid import NAMESPACE_URL, uuid5

import streamlit as st

from family_finance.access import RouteState
from family_finance.admin import SubscriptionUpdate
from family_finance.auth import Session, SessionStore, User
from family_finance.config import get_settings, validate_all_settings
from family_finance.models import (
    CategoryType,
    CreateAssetData,
    CreateCategoryData,
    CreateFamilyMemberData,
    CreateLiabilityData,
    CreateTransactionData,
    FamilyRole,
    SubscriptionPlan,
    TransactionType,
)
from family_finance.orchestrator import AppComponents, SessionServices, create_app_components
from family_finance.repositories import type_label
from family_finance.validation import (
    CategoryForm,
    FamilyMemberForm,
    SignInForm,
    TransactionForm,
    validate_form,
)


st.set_page_config(
    page_title="Family Finance",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components(use_storage=True)


# page title -> (route, needs subscription)
PAGES = {
    "🏠 Dashboard": ("/dashboard", False),
    "💸 Transactions": ("/transactions", False),
    "🏷️ Categories": ("/categories", False),
    "👨‍👩‍👧 Family": ("/family", False),
    "📉 Liabilities": ("/liabilities", True),
    "🏦 Assets": ("/assets", True),
    "🛡️ Admin": ("/admin", False),
}


def get_store() -> SessionStore:
    if "session_store" not in st.session_state:
        st.session_state.session_store = SessionStore(Session.anonymous())
    return st.session_state.session_store


def get_services(components: AppComponents, session: Session) -> SessionServices:
    """This browser session's services, rebuilt when the signed-in user changes."""
    services = st.session_state.get("services")
    if services is None or st.session_state.get("services_user") != session.user_id:
        notifier = services.notifier if services is not None else None
        services = components.services_for(session, notifier)
        if session.user is not None:
            run_async(services.repositories.refresh_all())
        st.session_state.services = services
        st.session_state.services_user = session.user_id
    return services


def show_notifications(services: SessionServices) -> None:
    for notification in services.notifier.drain():
        icon = "⚠️" if notification.is_error else "✅"
        st.toast(f"**{notification.title}**  \n{notification.description}", icon=icon)


def main():
    """Main application entry point."""
    components = get_components()
    store = get_store()
    session = store.current
    services = get_services(components, session)

    st.sidebar.title("💰 Family Finance")
    st.sidebar.markdown("---")

    if session.user is None:
        close_watch()
        render_landing_page(store)
        show_notifications(services)
        return

    st.sidebar.markdown(f"Signed in as **{session.user.email}**")
    if st.sidebar.button("Sign out"):
        close_watch()
        store.sign_out()
        st.rerun()

    page = st.sidebar.radio("Navigate to:", list(PAGES), index=0)
    route, needs_subscription = PAGES[page]
    if route != "/liabilities":
        close_watch()

    guard = components.route_guard(require_subscription=needs_subscription)
    decision = run_async(guard.resolve(session, services.validator))

    if decision.state == RouteState.INSUFFICIENT_PLAN:
        render_pricing_page()
    elif decision.state == RouteState.UNAUTHENTICATED:
        render_landing_page(store)
    elif decision.renders:
        repos = services.repositories
        if route == "/dashboard":
            render_dashboard(services, session)
        elif route == "/transactions":
            render_transactions_page(repos)
        elif route == "/categories":
            render_categories_page(repos)
        elif route == "/family":
            render_family_page(repos)
        elif route == "/liabilities":
            render_liabilities_page(repos)
        elif route == "/assets":
            render_assets_page(repos)
        elif route == "/admin":
            render_admin_page(services, session)
    else:
        st.info("Loading...")

    show_notifications(services)


def close_watch() -> None:
    subscription = st.session_state.pop("liabilities_watch", None)
    if subscription is not None:
        subscription.close()


# =============================================================================
# PUBLIC PAGES
# =============================================================================

def render_landing_page(store: SessionStore):
    """
    Development-only sign-in.

    Any email opens the account derived from it; the password is never
    verified.
    """
    st.title("💰 Family Finance")
    st.markdown("Keep track of your family's money in one place.")
    st.warning(
        "Development sign-in: passwords are not checked and anyone can open "
        "any account. Do not use with real data."
    )

    with st.form("sign_in"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        result = validate_form(SignInForm, {"email": email, "password": password})
        if not result.is_valid:
            for issue in result.issues:
                st.error(f"{issue.field}: {issue.message}")
            return
        user = User(id=str(uuid5(NAMESPACE_URL, f"mailto:{result.data.email}")), email=result.data.email)
        store.sign_in(user)
        st.rerun()


def render_pricing_page():
    st.title("⭐ Upgrade your plan")
    st.markdown(
        "This page needs an active subscription on the **premium** or "
        "**family** plan. Ask your family administrator to upgrade."
    )
    col1, col2, col3 = st.columns(3)
    col1.metric("Free", "Transactions and categories")
    col2.metric("Premium", "Liabilities and assets")
    col3.metric("Family", "Everything, for the whole family")


# =============================================================================
# MEMBER PAGES
# =============================================================================

def render_dashboard(services: SessionServices, session):
    st.title("🏠 Dashboard")

    stats = services.repositories.transactions.monthly_stats()
    col1, col2, col3 = st.columns(3)
    col1.metric("Income this month", f"{stats.income:.2f}")
    col2.metric("Expenses this month", f"{stats.expenses:.2f}")
    col3.metric("Balance", f"{stats.balance:.2f}")

    # optional panel: stay quiet for users without the plan
    if run_async(services.validator.has_access(session, SubscriptionPlan.PREMIUM)):
        net_worth = run_async(services.net_worth.fetch(session))
        if net_worth is not None:
            st.markdown("### Net worth")
            col1, col2, col3 = st.columns(3)
            col1.metric("Assets", f"{net_worth.total_assets:.2f}")
            col2.metric("Liabilities", f"{net_worth.total_liabilities:.2f}")
            col3.metric("Net worth", f"{net_worth.net_worth:.2f}")


def render_transactions_page(repos):
    st.title("💸 Transactions")

    categories = repos.categories.items
    members = repos.family_members.items
    if not categories or not members:
        st.info("Add at least one category and one family member first.")
    else:
        with st.form("new_transaction"):
            tx_type = st.selectbox("Type", list(TransactionType), format_func=type_label)
            description = st.text_input("Description")
            amount = st.number_input("Amount", min_value=0.0, step=0.01, format="%.2f")
            category = st.selectbox("Category", categories, format_func=lambda c: f"{c.emoji} {c.name}")
            member = st.selectbox("Family member", members, format_func=lambda m: m.name)
            tx_date = st.date_input("Date", value=date.today())
            submitted = st.form_submit_button("Save", type="primary")

        if submitted:
            result = validate_form(TransactionForm, {
                "type": tx_type,
                "description": description,
                "amount": Decimal(str(amount)),
                "category_id": category.id,
                "family_member_id": member.id,
                "date": tx_date,
            })
            if not result.is_valid:
                for issue in result.issues:
                    st.error(f"{issue.field}: {issue.message}")
            else:
                form = result.data
                run_async(repos.transactions.create(CreateTransactionData(
                    type=form.type,
                    description=form.description,
                    amount=form.amount,
                    category=str(form.category_id),
                    family_member_id=str(form.family_member_id),
                    date=form.date,
                )))

    st.markdown("---")
    for t in repos.transactions.items:
        col1, col2, col3 = st.columns([4, 2, 1])
        col1.markdown(f"**{t.description}** · {t.date.isoformat()}")
        col2.markdown(f"{type_label(t.type)}: {t.amount:.2f}")
        if col3.button("Delete", key=f"tx_del_{t.id}"):
            run_async(repos.transactions.delete(t.id))
            st.rerun()


def render_categories_page(repos):
    st.title("🏷️ Categories")

    with st.form("new_category"):
        name = st.text_input("Name")
        category_type = st.selectbox("Type", list(CategoryType), format_func=lambda c: c.value.title())
        color = st.color_picker("Color", value=get_settings().app.default_category_color)
        emoji = st.text_input("Emoji", value=get_settings().app.default_category_emoji)
        submitted = st.form_submit_button("Save", type="primary")

    if submitted:
        result = validate_form(CategoryForm, {
            "name": name,
            "type": category_type,
            "icon": emoji,
            "color": color,
        })
        if not result.is_valid:
            for issue in result.issues:
                st.error(f"{issue.field}: {issue.message}")
        else:
            run_async(repos.categories.create(CreateCategoryData(
                name=result.data.name,
                type=result.data.type,
                color=result.data.color,
                emoji=result.data.icon,
            )))

    st.markdown("---")
    for c in repos.categories.items:
        col1, col2, col3 = st.columns([4, 1, 1])
        col1.markdown(f"{c.emoji} **{c.name}** ({c.type.value})")
        star = "★" if c.is_favorite else "☆"
        if col2.button(star, key=f"cat_fav_{c.id}"):
            run_async(repos.categories.toggle_favorite(c.id, c.is_favorite))
            st.rerun()
        if col3.button("Delete", key=f"cat_del_{c.id}"):
            run_async(repos.categories.delete(c.id))
            st.rerun()


def render_family_page(repos):
    st.title("👨‍👩‍👧 Family")

    with st.form("new_member"):
        name = st.text_input("Name")
        role = st.selectbox("Role", list(FamilyRole), format_func=lambda r: r.value.title())
        submitted = st.form_submit_button("Add member", type="primary")

    if submitted:
        result = validate_form(FamilyMemberForm, {"name": name, "role": role})
        if not result.is_valid:
            for issue in result.issues:
                st.error(f"{issue.field}: {issue.message}")
        else:
            run_async(repos.family_members.create(CreateFamilyMemberData(
                name=result.data.name,
                role=result.data.role.value,
            )))

    st.markdown("---")
    for m in repos.family_members.items:
        col1, col2 = st.columns([5, 1])
        col1.markdown(f"**{m.name}** ({m.role})")
        if col2.button("Remove", key=f"member_del_{m.id}"):
            run_async(repos.family_members.delete(m.id))
            st.rerun()


def render_liabilities_page(repos):
    st.title("📉 Liabilities")

    # the feed releases this listener once the session state is discarded
    if "liabilities_watch" not in st.session_state:
        st.session_state.liabilities_watch = repos.liabilities.watch()

    with st.form("new_liability"):
        name = st.text_input("Name")
        total = st.number_input("Total amount", min_value=0.0, step=0.01, format="%.2f")
        remaining = st.number_input("Remaining amount", min_value=0.0, step=0.01, format="%.2f")
        due = st.date_input("Due date", value=None)
        creditor = st.text_input("Creditor")
        submitted = st.form_submit_button("Save", type="primary")

    if submitted:
        run_async(repos.liabilities.create(CreateLiabilityData(
            name=name,
            total_amount=Decimal(str(total)),
            remaining_amount=Decimal(str(remaining)),
            due_date=due,
            creditor=creditor or None,
        )))

    st.markdown("---")
    for item in repos.liabilities.items:
        col1, col2, col3 = st.columns([4, 2, 1])
        due_label = item.due_date.isoformat() if item.due_date else "no due date"
        col1.markdown(f"**{item.name}** · {due_label}")
        col2.markdown(f"{item.remaining_amount:.2f} of {item.total_amount:.2f}")
        if col3.button("Delete", key=f"liab_del_{item.id}"):
            run_async(repos.liabilities.delete(item.id))
            st.rerun()


def render_assets_page(repos):
    st.title("🏦 Assets")

    with st.form("new_asset"):
        name = st.text_input("Name")
        value = st.number_input("Value", min_value=0.0, step=0.01, format="%.2f")
        category = st.text_input("Category")
        submitted = st.form_submit_button("Save", type="primary")

    if submitted:
        run_async(repos.assets.create(CreateAssetData(
            name=name,
            value=Decimal(str(value)),
            category=category or None,
        )))

    st.markdown("---")
    for a in repos.assets.items:
        col1, col2, col3 = st.columns([4, 2, 1])
        col1.markdown(f"**{a.name}**")
        col2.markdown(f"{(a.current_value if a.current_value is not None else a.value):.2f}")
        if col3.button("Delete", key=f"asset_del_{a.id}"):
            run_async(repos.assets.delete(a.id))
            st.rerun()


# =============================================================================
# ADMIN
# =============================================================================

def render_admin_page(services: SessionServices, session):
    st.title("🛡️ Admin")

    if not run_async(services.admin.is_admin(session)):
        st.warning("Only administrators can see this page.")
        return

    subscriptions = run_async(services.admin.list_subscriptions(session))
    st.markdown(f"**{len(subscriptions)}** subscriptions")

    for sub in subscriptions:
        with st.expander(f"{sub.user_id} · {sub.plan} · {sub.status}"):
            col1, col2 = st.columns(2)
            plans = list(SubscriptionPlan)
            current = next((i for i, p in enumerate(plans) if p.value == sub.plan), 0)
            plan = col1.selectbox(
                "Plan",
                plans,
                index=current,
                key=f"plan_{sub.user_id}",
                format_func=lambda p: p.value.title(),
            )
            if col1.button("Activate plan", key=f"activate_{sub.user_id}"):
                run_async(services.admin.activate(session, sub.user_id, plan))
                st.rerun()
            if col2.button(f"Grant {get_settings().app.default_trial_days}-day trial", key=f"trial_{sub.user_id}"):
                run_async(services.admin.grant_trial(session, sub.user_id))
                st.rerun()
            if col2.button("Expire", key=f"expire_{sub.user_id}"):
                run_async(services.admin.update_subscription(
                    session, sub.user_id, SubscriptionUpdate(status="expired"),
                ))
                st.rerun()

    st.markdown("---")
    st.markdown("### Connection Status")
    status = validate_all_settings()
    for key in ("google_sheets", "access", "app"):
        if status.get(key, False):
            st.success(f"✅ {key} settings loaded")
        else:
            st.error(f"❌ {key}: {status.get(f'{key}_error', 'Not configured')}")


if __name__ == "__main__":
    main()
