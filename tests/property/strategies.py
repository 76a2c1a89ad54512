"""
Hypothesis Strategies for Property-Based Testing

Custom strategies for generating token payloads, sample names and
filenames.
"""

import string

from hypothesis import strategies as st

from soundpack.domain.asset_storage.catalog import DEFAULT_SAMPLES

SAMPLE_NAMES = [sample.filename for sample in DEFAULT_SAMPLES]


# =============================================================================
# Primitive Strategies
# =============================================================================

def sample_names():
    """Names from the preview allow-list."""
    return st.sampled_from(SAMPLE_NAMES)


def ttls_ms():
    """Positive token lifetimes up to a week."""
    return st.integers(min_value=1, max_value=7 * 24 * 60 * 60 * 1000)


def epoch_ms():
    return st.integers(min_value=0, max_value=4_102_444_800_000)


@st.composite
def emails(draw) -> str:
    local = draw(st.text(alphabet=string.ascii_lowercase + string.digits + "._+", min_size=1, max_size=20))
    domain = draw(st.text(alphabet=string.ascii_lowercase, min_size=1, max_size=12))
    return f"{local}@{domain}.com"


# =============================================================================
# Payload Strategies
# =============================================================================

json_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2 ** 53), max_value=2 ** 53),
    st.text(max_size=40),
)


@st.composite
def download_payloads(draw) -> dict:
    """Payload dicts as embedded in download tokens (without "exp")."""
    payload = {"email": draw(emails()), "filename": draw(st.text(max_size=60))}
    extra = draw(st.dictionaries(
        st.text(alphabet=string.ascii_lowercase, min_size=1, max_size=10).filter(lambda k: k != "exp"),
        json_scalars,
        max_size=4,
    ))
    payload.update(extra)
    return payload


def raw_filenames():
    """Arbitrary filename-ish text including traversal and control characters."""
    fragments = st.one_of(
        st.sampled_from(["../", "/", "\\", '"', "\r", "\n", "\x00", ".", " "]),
        st.characters(blacklist_categories=("Cs",)),
    )
    return st.lists(fragments, max_size=40).map("".join)
