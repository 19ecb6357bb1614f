# app.py

import asyncio
import streamlit as st

from core.account_manager import AccountManager
from core.dates import format_date
from core.errors import ValidationFailure
from core.exporter import export_filename
from core.services import open_services
from core.store import DocumentStore

# --- Page & State Configuration ---
st.set_page_config(page_title="Field Visit Tracker", page_icon="🌾", layout="wide")

def initialize_session_state():
    """Initializes all necessary session state variables."""
    if "logged_in" not in st.session_state:
        st.session_state.logged_in = False
    if "uid" not in st.session_state:
        st.session_state.uid = None
    if "username" not in st.session_state:
        st.session_state.username = None
    if "visits_page" not in st.session_state:
        st.session_state.visits_page = None
    if "loaded_scope" not in st.session_state:
        st.session_state.loaded_scope = None

# --- Async helpers ---
# The async Mongo client belongs to one event loop, so every call opens its own store.

async def _with_accounts(action, *args):
    store = DocumentStore()
    try:
        return await action(AccountManager(store), *args)
    finally:
        await store.close()

async def _load_visits_page(uid, farmer_id, field_id):
    async with open_services(uid) as services:
        page = services.visits_page()
        page.filters.farmer_id = farmer_id
        page.filters.field_id = field_id
        await page.load()
        return page

async def _load_recent(uid):
    async with open_services(uid) as services:
        return await services.dashboard().load_recent()

# --- Authentication Logic ---
def show_login_signup_page():
    """Displays the login and sign-up forms."""
    st.title("Welcome to the Field Visit Tracker 🌾")

    login_tab, signup_tab = st.tabs(["Login", "Sign Up"])

    with login_tab:
        with st.form("login_form"):
            username = st.text_input("Username", key="login_username")
            password = st.text_input("Password", type="password", key="login_password")
            submitted = st.form_submit_button("Login")
            if submitted:
                user = asyncio.run(_with_accounts(AccountManager.authenticate_user, username, password))
                if user:
                    st.session_state.logged_in = True
                    st.session_state.uid = user.uid
                    st.session_state.username = user.username
                    st.success("Logged in successfully!")
                    st.rerun()
                else:
                    st.error("Invalid username or password.")

    with signup_tab:
        with st.form("signup_form"):
            new_username = st.text_input("Choose a Username", key="signup_username")
            new_password = st.text_input("Choose a Password", type="password", key="signup_password")
            submitted = st.form_submit_button("Sign Up")
            if submitted:
                try:
                    asyncio.run(_with_accounts(AccountManager.create_user, new_username, new_password))
                    st.success("Account created! Please login.")
                except ValidationFailure as e:
                    st.error(e)

# --- Views ---
def visit_rows(views):
    return [
        {
            "Date": format_date(v.visit.date),
            "Farmer": v.farmer_label,
            "Phone": v.phone,
            "Field": v.field_label,
            "Address": v.address,
            "Note": v.visit.note,
            "Recommendations": ", ".join(v.recommendation_names),
        }
        for v in views
    ]

def show_dashboard():
    st.title("Recent visits")
    state = asyncio.run(_load_recent(st.session_state.uid))
    if state.error:
        st.error(state.error)
    elif not state.recent:
        st.info("No visits recorded yet.")
    else:
        st.dataframe(visit_rows(state.recent), use_container_width=True)

def show_visits():
    st.title("Visits")
    page = st.session_state.visits_page

    farmer_choices = {"": "All farmers"}
    field_choices = {"": "All fields"}
    if page is not None:
        farmer_choices.update(dict(page.farmer_options()))
        field_choices.update(dict(page.field_options()))

    col_farmer, col_field = st.columns(2)
    farmer_id = col_farmer.selectbox("Farmer", list(farmer_choices), format_func=farmer_choices.get)
    field_id = col_field.selectbox("Field", list(field_choices), format_func=field_choices.get,
                                   disabled=not farmer_id)

    # Farmer/field scope changes reload; everything else filters what is loaded.
    scope = (farmer_id or None, (field_id or None) if farmer_id else None)
    if page is None or st.session_state.loaded_scope != scope:
        with st.spinner("Loading visits..."):
            page = asyncio.run(_load_visits_page(st.session_state.uid, *scope))
        st.session_state.visits_page = page
        st.session_state.loaded_scope = scope

    col_from, col_to, col_search = st.columns([1, 1, 2])
    date_from = col_from.date_input("From", value=None)
    date_to = col_to.date_input("To", value=None)
    search = col_search.text_input("Search", placeholder="Note, farmer, phone, field, address, recommendation")

    date_from = date_from.isoformat() if date_from else None
    date_to = date_to.isoformat() if date_to else None
    if (date_from, date_to, search) != (page.filters.date_from, page.filters.date_to, page.filters.search):
        page.set_date_from(date_from)
        page.set_date_to(date_to)
        page.set_search(search)

    if page.state.error:
        st.error(page.state.error)
        if st.button("Retry"):
            st.session_state.visits_page = None
            st.rerun()
        return

    if not page.page_items:
        st.info("No visits match the current filters.")
    else:
        st.dataframe(visit_rows(page.page_items), use_container_width=True)

    col_prev, col_info, col_next, col_export = st.columns([1, 2, 1, 2])
    if col_prev.button("◀ Previous", disabled=page.page_index == 0):
        page.prev()
        st.rerun()
    col_info.write(f"Page {page.page_index + 1} of {page.pager.page_count} · {len(page.state.visits)} visits")
    if col_next.button("Next ▶", disabled=not page.has_next):
        page.next()
        st.rerun()

    csv_text = page.export_csv()
    if csv_text:
        col_export.download_button("Export page (CSV)", csv_text, file_name=export_filename(), mime="text/csv")

# --- Main Interface Logic ---
def show_main_interface():
    with st.sidebar:
        st.header(f"Welcome, {st.session_state.username}!")
        view = st.radio("Go to", ["Dashboard", "Visits"])
        if st.button("Logout"):
            for key in list(st.session_state.keys()):
                del st.session_state[key]
            st.rerun()

    if view == "Dashboard":
        show_dashboard()
    else:
        show_visits()

# --- Application Entry Point ---
initialize_session_state()

if st.session_state.logged_in:
    show_main_interface()
else:
    show_login_signup_page()
