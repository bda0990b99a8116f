"""Prompt Lab - Main Gradio UI Application."""

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import gradio as gr

from .auth import AuthError, SessionService
from .config import AppSettings, ConfigManager, configure_logging, load_workspace_config
from .errors import AlreadyInProgressError
from .llm import estimate_cost, format_cost
from .models import AIActionType
from .providers.registry import create_provider
from .storage import JsonFileStore
from .workspace import Workspace

log = logging.getLogger(__name__)

ALL_PROMPTS = "__all__"
FAVORITES = "__favorites__"

# Global state
WORKSPACE: Optional[Workspace] = None
SESSIONS: Optional[SessionService] = None
CONFIG: Optional[ConfigManager] = None


def init_services(settings: AppSettings, select_first_prompt: bool = True) -> Tuple[Workspace, SessionService]:
    """Create the store, provider, workspace and session service for ``settings``."""
    global WORKSPACE, SESSIONS
    store = JsonFileStore(settings.data_dir)
    provider = create_provider(settings)
    WORKSPACE = Workspace(store, provider, select_first_prompt=select_first_prompt)
    SESSIONS = SessionService(store, login_delay=settings.login_delay)
    return WORKSPACE, SESSIONS


# ============================================================================
# View helpers
# ============================================================================


def category_choices(ws: Workspace) -> List[Tuple[str, str]]:
    """Sidebar entries: All, Favorites, then the category tree indented by depth."""
    choices = [("All Prompts", ALL_PROMPTS), ("★ Favorites", FAVORITES)]
    for category, depth in ws.categories.walk():
        choices.append((f"{'    ' * depth}{'└ ' if depth else ''}{category.name}", category.id))
    return choices


def current_nav(ws: Workspace) -> str:
    if ws.criteria.favorites_only:
        return FAVORITES
    return ws.criteria.category_id or ALL_PROMPTS


def prompt_choices(ws: Workspace) -> List[Tuple[str, str]]:
    """Prompt list entries for the current filter."""
    choices = []
    for prompt in ws.visible_prompts():
        label = prompt.title
        if prompt.is_favorite:
            label += " ★"
        if prompt.metadata.score:
            label += f"  [Score: {prompt.metadata.score}]"
        if prompt.tags:
            label += "  " + " ".join(f"#{t}" for t in prompt.tags)
        choices.append((label, prompt.id))
    return choices


def format_stats(ws: Workspace) -> str:
    prompt = ws.active_prompt
    if prompt is None:
        return ""
    meta = prompt.metadata
    lines = ["### Prompt Stats"]
    for point in ws.stats():
        lines.append(f"- {point.name}: {point.value:g}")
        if point.cost is not None:
            lines.append(f"- **Estimated cost:** {format_cost(point.cost)}")
            # every token billed as completion
            lines.append(f"- Output-rate ceiling: {format_cost(estimate_cost(0, int(point.value)))}")
    if meta.model_used:
        lines.append(f"- Model: `{meta.model_used}`")
    if meta.feedback:
        lines.append(f"\n### Evaluation\n> {meta.feedback}")
    return "\n".join(lines)


def result_update(ws: Workspace) -> dict:
    """Copyable result box, hidden until an action produced text."""
    if ws.last_result is None:
        return gr.update(value="", visible=False)
    return gr.update(value=ws.last_result.text, label=ws.last_result.heading, visible=True)


def render_view(status: str = "") -> tuple:
    """Updates for every main-view component, in VIEW_OUTPUTS order."""
    ws = WORKSPACE
    if ws is None or not ws.is_open:
        return tuple(gr.update() for _ in range(12)) + (status,)
    editing = ws.editor.is_editing
    has_prompt = ws.active_prompt is not None
    prompts = prompt_choices(ws)
    selected = ws.selected_prompt_id if any(pid == ws.selected_prompt_id for _, pid in prompts) else None
    return (
        gr.update(choices=category_choices(ws), value=current_nav(ws)),
        gr.update(value=ws.criteria.search),
        gr.update(choices=prompts, value=selected),
        gr.update(value=ws.editor.title, interactive=editing),
        gr.update(value=ws.editor.content, interactive=editing),
        gr.update(visible=has_prompt and not editing),
        gr.update(visible=editing),
        gr.update(visible=editing),
        gr.update(interactive=has_prompt),
        result_update(ws),
        gr.update(visible=ws.last_result is not None),
        format_stats(ws),
        status,
    )


# ============================================================================
# Auth handlers
# ============================================================================


async def submit_auth(mode: str, name: str, email: str, password: str) -> tuple:
    """Log in or register, then open the workspace."""
    try:
        if mode == "Register":
            user = await SESSIONS.register(name, email, password)
        else:
            user = await SESSIONS.login(email, password)
    except AuthError as e:
        return (f"❌ {e}", gr.update(visible=True), gr.update(visible=False)) + render_view()

    WORKSPACE.open(user)
    return ("", gr.update(visible=False), gr.update(visible=True)) + render_view(f"Signed in as **{user.name}**")


def logout_ui() -> tuple:
    SESSIONS.logout()
    WORKSPACE.close()
    return ("", gr.update(visible=True), gr.update(visible=False))


def restore_session_ui() -> tuple:
    """On page load, reopen the workspace when a session already exists."""
    user = SESSIONS.get_current_session()
    if user is None:
        return ("", gr.update(visible=True), gr.update(visible=False)) + render_view()
    if WORKSPACE.user is None or WORKSPACE.user.id != user.id:
        WORKSPACE.open(user)
    return ("", gr.update(visible=False), gr.update(visible=True)) + render_view(f"Signed in as **{user.name}**")


# ============================================================================
# Workspace handlers
# ============================================================================


def select_nav_ui(value: Optional[str]) -> tuple:
    if value == FAVORITES:
        WORKSPACE.select_favorites()
    else:
        WORKSPACE.select_category(None if value in (None, ALL_PROMPTS) else value)
    return render_view()


def search_ui(query: str) -> tuple:
    WORKSPACE.set_search(query)
    return render_view()


def select_prompt_ui(prompt_id: Optional[str]) -> tuple:
    if prompt_id and prompt_id != WORKSPACE.selected_prompt_id:
        WORKSPACE.select_prompt(prompt_id)
    return render_view()


def new_prompt_ui() -> tuple:
    WORKSPACE.create_prompt()
    return render_view()


def edit_ui() -> tuple:
    WORKSPACE.start_editing()
    return render_view()


def cancel_ui() -> tuple:
    WORKSPACE.cancel_editing()
    prompt = WORKSPACE.active_prompt
    if prompt is not None:
        WORKSPACE.edit(prompt.title, prompt.content)
    return render_view()


def save_ui(title: str, content: str) -> tuple:
    WORKSPACE.edit(title, content)
    saved = WORKSPACE.save()
    return render_view("✅ Saved" if saved else "")


def delete_ui() -> tuple:
    if WORKSPACE.selected_prompt_id:
        WORKSPACE.delete_prompt(WORKSPACE.selected_prompt_id)
    return render_view("🗑️ Prompt deleted")


def favorite_ui() -> tuple:
    if WORKSPACE.selected_prompt_id:
        WORKSPACE.toggle_favorite(WORKSPACE.selected_prompt_id)
    return render_view()


async def action_ui(action_value: str, title: str, content: str) -> tuple:
    """Run an AI action with whatever is currently in the editor."""
    if WORKSPACE.editor.is_editing:
        WORKSPACE.edit(title, content)
    try:
        outcome = await WORKSPACE.run_action(AIActionType(action_value))
    except AlreadyInProgressError:
        return render_view("⏳ An AI action is already running")

    if outcome is None:
        return render_view("Select a prompt first")
    if not outcome.succeeded:
        gr.Warning(outcome.error)
        return render_view(f"❌ {outcome.error}")
    return render_view(f"✅ {AIActionType(action_value).label} finished")


def apply_result_ui() -> tuple:
    if WORKSPACE.apply_result_to_editor():
        WORKSPACE.editor.is_editing = True
    return render_view()


def add_category_ui(name: str, parent: Optional[str]) -> tuple:
    parent_id = None if parent in (None, ALL_PROMPTS, FAVORITES) else parent
    try:
        WORKSPACE.add_category(name, parent_id)
    except ValueError as e:
        return render_view(f"❌ {e}")
    return render_view(f"✅ Added category {name.strip()}")


# ============================================================================
# Provider settings
# ============================================================================


def save_provider_settings_ui(
    provider_name: str,
    api_key: str,
    base_url: str,
    default_model: str,
    advanced_model: str,
) -> str:
    """Write provider settings to .env and switch the workspace to the new provider."""
    if CONFIG is None:
        return "❌ No .env file configured"
    saved = CONFIG.save_to_env(
        api_key=(api_key or "").strip(),
        base_url=(base_url or "").strip(),
        provider_name=provider_name or "openai",
        default_model=(default_model or "").strip() or None,
        advanced_model=(advanced_model or "").strip() or None,
    )
    if not saved:
        return f"❌ Could not write {CONFIG.env_file}"

    CONFIG.reload()
    try:
        provider = create_provider(CONFIG.settings)
    except ValueError as e:
        return f"❌ {e}"
    WORKSPACE.set_provider(provider)
    return f"✅ Saved to `{CONFIG.env_file}`. Using {provider.provider_name}."


# ============================================================================
# Main UI
# ============================================================================


def create_ui(settings: AppSettings) -> gr.Blocks:
    """Create Gradio UI."""
    with gr.Blocks(title="Prompt Lab") as demo:
        gr.Markdown("# ⚡ Prompt Lab")
        if settings.needs_configuration():
            gr.Markdown("⚠️ No provider configured: AI actions return mock responses.")

        # ====================================================================
        # Auth
        # ====================================================================

        with gr.Column(visible=True) as auth_col:
            auth_mode = gr.Radio(["Login", "Register"], value="Login", label="Account")
            auth_name = gr.Textbox(label="Name", placeholder="Only needed to register")
            auth_email = gr.Textbox(label="Email")
            auth_password = gr.Textbox(label="Password", type="password")
            auth_submit = gr.Button("Continue", variant="primary")
            auth_error = gr.Markdown()

        # ====================================================================
        # Workspace
        # ====================================================================

        with gr.Column(visible=False) as main_col:
            with gr.Row():
                with gr.Column(scale=1):
                    nav_radio = gr.Radio(label="Library", choices=[])
                    with gr.Accordion("New Category", open=False):
                        new_category_name = gr.Textbox(label="Name")
                        add_category_btn = gr.Button("➕ Add under selected", size="sm")
                    with gr.Accordion("⚙️ Provider Settings", open=settings.needs_configuration()):
                        provider_dropdown = gr.Dropdown(
                            choices=["openai", "ollama", "lm_studio", "openrouter", "vllm", "custom"],
                            value=settings.provider_name,
                            label="Provider",
                        )
                        api_key_input = gr.Textbox(
                            label="API Key",
                            value=settings.openai_api_key,
                            type="password",
                            placeholder="Leave empty for local models",
                        )
                        base_url_input = gr.Textbox(
                            label="Base URL",
                            value=settings.openai_base_url,
                            placeholder="Leave empty for OpenAI, or enter custom endpoint",
                        )
                        default_model_input = gr.Textbox(label="Model", value=settings.default_model)
                        advanced_model_input = gr.Textbox(label="Code plan model", value=settings.advanced_model)
                        save_settings_btn = gr.Button("💾 Save Settings", size="sm")
                        settings_status = gr.Markdown()
                    logout_btn = gr.Button("Sign out", size="sm")

                with gr.Column(scale=1):
                    search_box = gr.Textbox(label="Search prompts...", show_label=False, placeholder="Search prompts...")
                    prompt_list = gr.Radio(label="Prompts", choices=[])
                    new_prompt_btn = gr.Button("➕ New Prompt", variant="primary")

                with gr.Column(scale=3):
                    title_box = gr.Textbox(label="Title", interactive=False)
                    content_box = gr.Textbox(label="Prompt", lines=12, interactive=False, buttons=["copy"],
                                             placeholder="Enter your prompt here...")
                    with gr.Row():
                        edit_btn = gr.Button("✏️ Edit", size="sm")
                        save_btn = gr.Button("💾 Save Changes", size="sm", variant="primary", visible=False)
                        cancel_btn = gr.Button("Cancel", size="sm", visible=False)
                        favorite_btn = gr.Button("★ Favorite", size="sm")
                        delete_btn = gr.Button("🗑️ Delete", size="sm", variant="stop")

                    with gr.Row():
                        action_buttons = {
                            action: gr.Button(action.label, size="sm")
                            for action in AIActionType
                        }

                    result_box = gr.Textbox(label="Result", lines=10, interactive=False, buttons=["copy"], visible=False)
                    apply_btn = gr.Button("Apply to Editor", size="sm", visible=False)
                    status_md = gr.Markdown()

                with gr.Column(scale=1):
                    stats_md = gr.Markdown()

        view_outputs = [
            nav_radio, search_box, prompt_list, title_box, content_box,
            edit_btn, save_btn, cancel_btn, favorite_btn,
            result_box, apply_btn, stats_md, status_md,
        ]
        auth_outputs = [auth_error, auth_col, main_col] + view_outputs

        # ====================================================================
        # Event Handlers
        # ====================================================================

        auth_submit.click(
            fn=submit_auth,
            inputs=[auth_mode, auth_name, auth_email, auth_password],
            outputs=auth_outputs,
        )
        logout_btn.click(fn=logout_ui, outputs=[auth_error, auth_col, main_col])
        save_settings_btn.click(
            fn=save_provider_settings_ui,
            inputs=[provider_dropdown, api_key_input, base_url_input, default_model_input, advanced_model_input],
            outputs=[settings_status],
        )
        demo.load(fn=restore_session_ui, outputs=auth_outputs)

        nav_radio.input(fn=select_nav_ui, inputs=[nav_radio], outputs=view_outputs)
        search_box.submit(fn=search_ui, inputs=[search_box], outputs=view_outputs)
        prompt_list.input(fn=select_prompt_ui, inputs=[prompt_list], outputs=view_outputs)
        new_prompt_btn.click(fn=new_prompt_ui, outputs=view_outputs)
        add_category_btn.click(fn=add_category_ui, inputs=[new_category_name, nav_radio], outputs=view_outputs)

        edit_btn.click(fn=edit_ui, outputs=view_outputs)
        cancel_btn.click(fn=cancel_ui, outputs=view_outputs)
        save_btn.click(fn=save_ui, inputs=[title_box, content_box], outputs=view_outputs)
        favorite_btn.click(fn=favorite_ui, outputs=view_outputs)
        delete_btn.click(fn=delete_ui, outputs=view_outputs)
        apply_btn.click(fn=apply_result_ui, outputs=view_outputs)

        for action, button in action_buttons.items():
            action_state = gr.State(action.value)
            button.click(
                fn=action_ui,
                inputs=[action_state, title_box, content_box],
                outputs=view_outputs,
                concurrency_limit=1,
            )

    return demo


def main():
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(description="Prompt Lab - local prompt workspace with AI assistance")
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory for prompts, categories and accounts (default: ~/.prompt-lab)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to run Gradio server (default: from workspace.yaml, else 7860)",
    )
    parser.add_argument("--env-file", type=str, default=".env", help="Path to .env file")

    args = parser.parse_args()

    global CONFIG
    CONFIG = ConfigManager(args.env_file)
    settings = CONFIG.settings
    if args.data_dir:
        settings.data_dir = Path(args.data_dir)
    configure_logging(settings.log_level)

    workspace_config = load_workspace_config(settings.data_dir)
    init_services(settings, select_first_prompt=workspace_config.select_first_prompt)
    port = args.port or workspace_config.port

    print("⚡ Prompt Lab")
    print(f"Workspace: {workspace_config.name} ({settings.data_dir})")
    print(f"Provider: {WORKSPACE.provider.provider_name}")
    print(f"Starting server on port {port}...")

    demo = create_ui(settings)
    demo.launch(
        server_name="127.0.0.1",
        server_port=port,
        theme=gr.themes.Soft(),
    )


if __name__ == "__main__":
    main()
