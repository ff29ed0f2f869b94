# app.py

# --- Imports ---
import logging

import streamlit as st
import streamlit.components.v1 as components

from ppt_generator.config import DEFAULT_SLIDES, LOG_FORMAT, LOG_LEVEL, MAX_SLIDES, MIN_SLIDES, PPTX_MIME
from ppt_generator.coordinator import RequestCoordinator
from ppt_generator.delivery import ArtifactDelivery, DeliveryHandle, DownloadPage, HandleRegistry, build_save_script
from ppt_generator.models import HandOff, Notification

# --- Configuration ---
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

st.set_page_config(page_title="AI PPT Generator", page_icon="📄")


# --- Navigation & UI hooks ---
def go_to_download(handoff: HandOff):
    st.session_state.handoff = handoff.model_dump()
    st.session_state.stage = 'download'

def go_home():
    st.session_state.handoff = None
    st.session_state.stage = 'input'

def save_in_browser(handle: DeliveryHandle):
    components.html(build_save_script(handle), height=0)

def offer_download(handle: DeliveryHandle):
    st.download_button(
        label="Download PPT",
        data=handle.payload,
        file_name=handle.filename,
        mime=PPTX_MIME,
        use_container_width=True,
        type="primary",
    )

def notify(notification: Notification):
    st.session_state.notifications.append(notification)

def show_notifications():
    while st.session_state.notifications:
        notification = st.session_state.notifications.pop(0)
        if notification.level == "success":
            st.success(notification.message)
        else:
            st.error(notification.message, icon="⚠️")


# --- State Management ---
if 'stage' not in st.session_state:
    st.session_state.stage = 'input'
if 'handoff' not in st.session_state:
    st.session_state.handoff = None
if 'notifications' not in st.session_state:
    st.session_state.notifications = []
if 'registry' not in st.session_state:
    st.session_state.registry = HandleRegistry()
if 'coordinator' not in st.session_state:
    st.session_state.coordinator = RequestCoordinator(
        delivery=ArtifactDelivery(st.session_state.registry, save_in_browser, navigate=go_to_download),
        notify=notify,
    )

coordinator: RequestCoordinator = st.session_state.coordinator


def on_generate():
    with st.spinner("Creating your presentation..."):
        coordinator.submit(st.session_state.topic_input, st.session_state.slides_input)
    # Success clears the form; failure keeps it for a retry.
    st.session_state.topic_input = coordinator.topic
    st.session_state.slides_input = coordinator.slide_count


# --- UI Rendering Stages ---

# STAGE 1: Topic and slide count
if st.session_state.stage == 'input':
    if 'topic_input' not in st.session_state:
        st.session_state.topic_input = coordinator.topic
    if 'slides_input' not in st.session_state:
        st.session_state.slides_input = coordinator.slide_count or DEFAULT_SLIDES

    st.title("AI PPT Generator")
    st.caption("Create professional presentations instantly with AI")
    show_notifications()

    with st.form("ppt_form"):
        st.text_input("Presentation Topic *", key="topic_input", placeholder="e.g., Machine Learning Basics")
        st.number_input(
            "Number of Slides",
            min_value=MIN_SLIDES,
            max_value=MAX_SLIDES,
            step=1,
            key="slides_input",
            help=f"Choose between {MIN_SLIDES}-{MAX_SLIDES} slides",
        )
        st.form_submit_button(
            "Generate PPT",
            on_click=on_generate,
            disabled=coordinator.is_generating,
            type="primary",
            use_container_width=True,
        )

# STAGE 2: Deferred download
elif st.session_state.stage == 'download':
    page = DownloadPage(st.session_state.registry, offer_download, go_home)
    if not page.mount(st.session_state.handoff):
        st.rerun()

    handoff = page.handoff
    st.title("PPT Generated Successfully!")
    st.caption("Your presentation is ready for download")
    show_notifications()

    with st.container(border=True):
        st.markdown(f"**{handoff.filename}**")
        st.caption(f"Topic: {handoff.topic} • {handoff.slide_count} slides")

    try:
        page.save()
    except LookupError as e:
        logger.warning(f"Deck was revoked before it could be offered: {e}")
        page.leave()
        st.rerun()

    if st.button("Create Another Presentation"):
        page.leave()
        coordinator.reset()
        st.rerun()
