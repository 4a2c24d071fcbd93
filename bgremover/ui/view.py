from html import escape

from bgremover.ui.state import SessionState, ViewState

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>AI Background Remover</title>
    {refresh}
    <style>
        body {{ font-family: -apple-system, 'Segoe UI', Arial, sans-serif; background: #0f172a; color: #f8fafc; margin: 0; padding: 2rem; }}
        header, main, footer {{ max-width: 72rem; margin: 0 auto 2rem; }}
        header {{ text-align: center; }}
        main {{ display: grid; grid-template-columns: 1fr 1fr; gap: 2rem; }}
        .panel {{ background: #1e293b; border: 2px dashed #334155; border-radius: 1rem; padding: 1.5rem; min-height: 20rem; }}
        .panel img {{ width: 100%; max-height: 28rem; object-fit: contain; }}
        .checker {{ background: repeating-conic-gradient(#475569 0% 25%, #334155 0% 50%) 50% / 20px 20px; }}
        .error {{ color: #f87171; }}
        footer {{ display: flex; gap: 1rem; justify-content: center; }}
        button, .download {{ padding: 1rem 2rem; border: 0; border-radius: 999px; font-weight: bold; color: #fff; background: #4f46e5; text-decoration: none; }}
        button:disabled {{ background: #475569; }}
        .download {{ background: #0891b2; }}
    </style>
</head>
<body>
<header>
    <h1>AI Background Remover</h1>
    <p>Upload an image and let Gemini create a transparent background for you.</p>
</header>
<main>
    <section class="panel">
        <h2>Original Image</h2>
        {original}
        <form action="/select" method="post" enctype="multipart/form-data">
            <input type="file" name="file" accept="image/*" required>
            <input type="submit" value="{upload_label}">
        </form>
    </section>
    <section class="panel">
        {result}
    </section>
</main>
<footer>
    <form action="/remove" method="post">
        <button type="submit"{disabled}>{action_label}</button>
    </form>
    {download}
</footer>
</body>
</html>
"""


def _original_panel(state: SessionState) -> str:
    if state.preview_url is None:
        return "<p>Click to upload an image<br><small>PNG, JPG, WEBP, etc.</small></p>"
    return f'<img src="{escape(state.preview_url)}" alt="Original">'


def _result_panel(state: SessionState) -> str:
    view_state = state.view_state
    if view_state is ViewState.LOADING:
        return (
            "<h2>Result</h2><p>Removing background...</p>"
            "<p><small>This might take a moment.</small></p>"
        )
    if view_state is ViewState.FAILED:
        return (
            '<h2>Error</h2><div class="error"><p>An Error Occurred</p>'
            f"<p>{escape(state.error)}</p></div>"
        )
    if view_state is ViewState.SUCCEEDED:
        return f'<h2>Result</h2><img class="checker" src="{escape(state.result)}" alt="Processed">'
    return "<h2>Result</h2><p>Your processed image will appear here</p>"


def render_page(
    state: SessionState,
    download_filename: str = "background-removed.png",
    refresh_seconds: int = 2,
) -> str:
    """Render the whole page for the current view state."""
    loading = state.view_state is ViewState.LOADING

    download = ""
    if state.view_state is ViewState.SUCCEEDED:
        download = (
            f'<a class="download" href="{escape(state.result)}" '
            f'download="{escape(download_filename)}">Download</a>'
        )

    return PAGE_TEMPLATE.format(
        refresh=f'<meta http-equiv="refresh" content="{refresh_seconds}">' if loading else "",
        original=_original_panel(state),
        upload_label="Change Image" if state.file is not None else "Upload",
        result=_result_panel(state),
        disabled="" if state.can_trigger else " disabled",
        action_label="Processing..." if loading else "Remove Background",
        download=download,
    )
