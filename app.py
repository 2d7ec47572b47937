"""
Streamlit Consolidated Grade Export

Web front end for turning a section snapshot into the consolidated Excel
workbook.
"""

import streamlit as st
import pandas as pd
import json

from consolidated_export import (
    XLSX_MIME,
    ExportError,
    ExportOptions,
    Snapshot,
    SnapshotError,
    build_column_schema,
    build_observation_index,
    export_consolidated,
    get_default_config,
    index_hierarchy,
    matrix_to_frame,
    merge_config,
    populate_matrix,
    validate_config,
    validate_snapshot,
)


# Page configuration
st.set_page_config(
    page_title="Consolidated Grade Export",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="collapsed"
)

PALETTE_LABELS = {
    "session": "Session header",
    "competency": "Competency header",
    "ability": "Ability header",
    "fixed_columns": "Number / name columns",
    "observation": "Observation marker",
    "ability_average": "Ability average",
    "border": "Borders",
}


def init_session_state():
    """Initialize session state with default values."""
    if "config" not in st.session_state:
        st.session_state.config = get_default_config()

    if "config_loaded" not in st.session_state:
        st.session_state.config_loaded = False

    if "snapshot" not in st.session_state:
        st.session_state.snapshot = None


def config_to_json(config: dict) -> str:
    """Convert config dict to JSON string."""
    return json.dumps(config, indent=2, ensure_ascii=False)


def to_picker(color: str) -> str:
    """ARGB config color to the #RRGGBB form st.color_picker uses."""
    return "#" + color.lstrip("#")[-6:]


def observations_frame(snapshot: Snapshot, options: ExportOptions) -> pd.DataFrame:
    """Preview of the Observations sheet."""
    index = build_observation_index(snapshot)
    return pd.DataFrame(
        [(row.student_name, row.ability_name, row.text) for row in index.rows],
        columns=list(options.observations_header),
    )


def consolidated_frame(snapshot: Snapshot, options: ExportOptions) -> pd.DataFrame:
    """Preview of the Consolidated sheet body."""
    schema = build_column_schema(index_hierarchy(snapshot), options.header_labels())
    rows = populate_matrix(snapshot, schema, build_observation_index(snapshot), options)
    return matrix_to_frame(schema, rows, options)


def render_sidebar():
    """Render a minimal sidebar for quick config access."""
    st.sidebar.header("Quick Access")

    uploaded_config = st.sidebar.file_uploader(
        "Upload config JSON",
        type=["json"],
        key="sidebar_config_uploader",
        help="Quick upload for config file"
    )

    if uploaded_config is not None:
        try:
            user_config = json.load(uploaded_config)
            st.session_state.config = merge_config(user_config)
            st.session_state.config_loaded = True
            st.sidebar.success("✓ Config loaded!")
        except json.JSONDecodeError:
            st.sidebar.error("Invalid JSON file")

    st.sidebar.download_button(
        "📥 Download Config",
        data=config_to_json(st.session_state.config),
        file_name="export_config.json",
        mime="application/json"
    )


def render_step1_options():
    """Render Step 1: Export options."""
    config = st.session_state.config

    st.header("Step 1: Export Options")
    st.markdown("Choose what the workbook contains and how it looks.")

    col1, col2 = st.columns([1, 2])

    with col1:
        config["observations_sheet"] = st.checkbox(
            "Add Observations sheet",
            value=config["observations_sheet"],
            help="Second sheet with the full text of every observation, linked from the main sheet"
        )
        config["calculate_averages"] = st.checkbox(
            "Calculate averages",
            value=config["calculate_averages"],
            help="Fill ability and competency averages (AD=4, A=3, B=2, C=1). Off leaves them blank for manual entry."
        )
        config["show_icon"] = st.checkbox(
            "Show observation icon",
            value=config["show_icon"]
        )
        config["sort_students"] = st.checkbox(
            "Sort students by name",
            value=config["sort_students"],
            help="Off keeps the roster order of the snapshot"
        )
        config["output_file"] = st.text_input(
            "File name",
            value=config["output_file"]
        )

    with col2:
        st.subheader("Colors")
        c1, c2 = st.columns(2)
        for i, (name, label) in enumerate(PALETTE_LABELS.items()):
            with (c1 if i % 2 == 0 else c2):
                picked = st.color_picker(label, value=to_picker(config["palette"][name]), key=f"color_{name}")
                config["palette"][name] = "FF" + picked.lstrip("#").upper()

    issues = validate_config(config)
    for issue in issues:
        if issue["type"] == "warning":
            st.warning(f"⚠️ {issue['message']}")
        else:
            st.error(f"❌ {issue['message']}")


def render_step2_snapshot():
    """Render Step 2: Section snapshot."""
    snapshot = st.session_state.snapshot

    if snapshot is not None:
        st.header(f"Step 2: Section Data ✓ ({len(snapshot.students)} students)")
    else:
        st.header("Step 2: Section Data")

    st.markdown("Upload the consolidated JSON of one section.")

    uploaded = st.file_uploader(
        "Upload section snapshot",
        type=["json"],
        key="snapshot_uploader"
    )

    if uploaded is not None:
        try:
            st.session_state.snapshot = Snapshot.from_dict(json.load(uploaded))
            snapshot = st.session_state.snapshot
        except json.JSONDecodeError:
            st.error("Invalid JSON file")
            return
        except SnapshotError as e:
            st.error(f"Not a section snapshot: {e}")
            return

    if snapshot is None:
        st.info("Upload a snapshot to continue")
        return

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Students", len(snapshot.students))
    c2.metric("Sessions", len(snapshot.sessions))
    c3.metric("Criteria", len(snapshot.criteria))
    c4.metric("Observations", sum(1 for o in snapshot.observations if o.observation))

    for issue in validate_snapshot(snapshot):
        st.warning(f"⚠️ {issue['message']}")

    try:
        options = ExportOptions.from_config(st.session_state.config)
    except ValueError:
        st.info("Fix the options above to see a preview")
        return

    with st.expander("Preview consolidated sheet"):
        st.dataframe(consolidated_frame(snapshot, options).astype(str), hide_index=True, use_container_width=True)

    with st.expander("Preview observations"):
        st.dataframe(observations_frame(snapshot, options), hide_index=True, use_container_width=True)


def render_step3_generate():
    """Render Step 3: Generate Excel."""
    config = st.session_state.config
    snapshot = st.session_state.snapshot

    st.header("Step 3: Generate Excel")

    errors = [i for i in validate_config(config) if i["type"] == "error"]
    can_generate = snapshot is not None and not errors

    if st.button("🚀 Generate Excel", disabled=not can_generate, type="primary", use_container_width=True):
        with st.spinner("Generating Excel file..."):
            options = ExportOptions.from_config(config)
            try:
                data = export_consolidated(snapshot, options)
            except ExportError as e:
                st.error(f"❌ {e}")
                return

            st.download_button(
                "📥 Download Excel File",
                data=data,
                file_name=options.file_name,
                mime=XLSX_MIME,
                type="primary",
                use_container_width=True
            )

            st.success("✓ Excel file generated successfully!")

    if not can_generate:
        if snapshot is None:
            st.info("Complete Step 2 to enable generation")
        else:
            st.info("Fix errors above to enable generation")


def main():
    """Main application entry point."""
    init_session_state()

    st.title("📊 Consolidated Grade Export")

    render_sidebar()

    render_step1_options()

    st.divider()

    render_step2_snapshot()

    st.divider()

    render_step3_generate()


if __name__ == "__main__":
    main()
