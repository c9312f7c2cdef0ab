"""
Tile Collapse — Step Viewer

Run with:
    streamlit run streamlit_app.py
"""

from __future__ import annotations

import io
import time

import streamlit as st
from PIL import Image, ImageDraw

from tile_collapse.catalog import BUILTIN_CATALOGS, get_catalog
from tile_collapse.config import CollapseConfig, parse_seed
from tile_collapse.drivers import Stepper
from tile_collapse.exceptions import ContradictionError
from tile_collapse.render import procedural_tile_images, render_grid

# -- Page config -------------------------------------------------------
st.set_page_config(
    page_title="Tile Collapse",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="collapsed",
)

_DEFAULTS = CollapseConfig()

# -- CSS ---------------------------------------------------------------
st.markdown("""
<style>
    .stApp {
        background-color: #faf9f6;
        color: #2a2a2a;
        font-family: 'Inter', 'Helvetica Neue', sans-serif;
    }
    .block-container {
        max-width: 1000px;
        padding-top: 3.5rem;
        padding-bottom: 4rem;
    }
    .gallery-title {
        font-family: 'Cormorant Garamond', 'Georgia', serif;
        font-size: 2.8rem;
        font-weight: 300;
        text-align: center;
        border-bottom: 1px solid #1a1a1a;
        padding-bottom: 0.6rem;
        margin-bottom: 0.5rem;
    }
    .label-detail {
        font-family: 'Cormorant Garamond', 'Georgia', serif;
        font-size: 0.85rem;
        font-style: italic;
        color: #a0a09a;
        text-align: center;
    }
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
""", unsafe_allow_html=True)


# -- Helpers -----------------------------------------------------------

def _add_passepartout(img: Image.Image, border: int = 20) -> Image.Image:
    w, h = img.size
    bg = (250, 249, 246)
    canvas = Image.new("RGB", (w + border * 2, h + border * 2), bg)
    canvas.paste(img.convert("RGB"), (border, border))
    draw = ImageDraw.Draw(canvas)
    draw.rectangle(
        [border - 1, border - 1, border + w, border + h],
        outline=(224, 222, 216), width=1,
    )
    return canvas


def _new_stepper(width: int, height: int, catalog: str, seed: int | None) -> None:
    st.session_state.stepper = Stepper(width, height, get_catalog(catalog), seed=seed)
    st.session_state.settings = (width, height, catalog, seed)


def _advance(count: int | None = None) -> None:
    """Collapse *count* cells (all remaining when ``None``)."""
    stepper: Stepper = st.session_state.stepper
    try:
        if count is None:
            stepper.run()
        else:
            for _ in range(count):
                if stepper.step() is None:
                    break
    except ContradictionError:
        pass  # kept on the stepper and reported below


# -- Title -------------------------------------------------------------
st.markdown('<div class="gallery-title">Tile Collapse</div>', unsafe_allow_html=True)

# -- Controls ----------------------------------------------------------
c1, c2, c3, c4 = st.columns(4)
with c1:
    width = st.slider("Columns", 2, 40, _DEFAULTS.width)
with c2:
    height = st.slider("Rows", 2, 40, _DEFAULTS.height)
with c3:
    catalog_name = st.selectbox("Catalog", list(BUILTIN_CATALOGS))
with c4:
    seed_text = st.text_input("Seed", "" if _DEFAULTS.seed is None else str(_DEFAULTS.seed))

seed = parse_seed(seed_text)
if seed_text.strip() and seed is None:
    st.warning("Seed must be a non-negative integer; using a random seed.")

o1, o2, o3 = st.columns(3)
with o1:
    show_entropy = st.checkbox("Show entropy", True)
with o2:
    show_guides = st.checkbox("Show guides", True)
with o3:
    tile_size = st.slider("Tile size", 16, 64, _DEFAULTS.tile_size)

settings = (width, height, catalog_name, seed)
if st.session_state.get("settings") != settings:
    _new_stepper(*settings)

b1, b2, b3, b4 = st.columns(4)
if b1.button("Step", use_container_width=True):
    _advance(1)
if b2.button("Step ×10", use_container_width=True):
    _advance(10)
if b3.button("Solve", use_container_width=True):
    _advance()
if b4.button("Reset", use_container_width=True):
    _new_stepper(*settings)

play = st.toggle("Play (one collapse per frame)", False)

# -- Canvas ------------------------------------------------------------
stepper: Stepper = st.session_state.stepper
tile_images = procedural_tile_images(stepper.catalog, tile_size)
canvas = st.empty()
status = st.empty()


def _draw() -> None:
    last = stepper.last
    image = render_grid(
        stepper.grid, tile_images, tile_size,
        show_entropy=show_entropy,
        show_guides=show_guides,
        active_cell=last.collapsed_cell if last else None,
        neighbor_cells=last.neighbor_cells() if last else None,
    )
    canvas.image(_add_passepartout(image, border=12), use_container_width=True)
    if stepper.error is not None:
        status.error(f"Contradiction: {stepper.error}. Press Reset to start over.")
    elif stepper.done:
        status.success(f"Solved in {stepper.steps} collapses.")
    else:
        status.markdown(
            f'<div class="label-detail">{stepper.steps} collapsed &middot; '
            f"{stepper.grid.unresolved_count()} open</div>",
            unsafe_allow_html=True,
        )


_draw()
while play and not stepper.done:
    _advance(1)
    _draw()
    time.sleep(_DEFAULTS.gif_frame_ms / 1000)

if stepper.done and stepper.error is None:
    buf = io.BytesIO()
    render_grid(stepper.grid, tile_images, tile_size).save(buf, format="PNG")
    st.download_button(
        "Download PNG",
        data=buf.getvalue(),
        file_name="tile_collapse.png",
        mime="image/png",
        use_container_width=True,
    )
