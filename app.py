import gradio as gr

from spec_doc_converter.config import SpecFormat, configure_logging, options_from_env
from spec_doc_converter.handlers_convert import (
    doc_to_spec_handler,
    fidelity_handler,
    list_component_names,
    load_input_file,
    preview_component_rows,
    spec_to_doc_handler,
)

configure_logging()
defaults = options_from_env()


def refresh_component_choices(content):
    names = list_component_names(content)
    return gr.update(choices=names, value=names[0] if names else None)


# --- UI Definition ---
with gr.Blocks(title="API Spec Document Converter") as demo:
    gr.Markdown("# API Spec ⇄ Document Converter")
    gr.Markdown("Turn an OpenAPI spec into a readable document, rebuild a spec from that document, and check how much survives the round trip.")

    with gr.Tab("Spec → Document"):
        with gr.Row():
            # Left Panel: Input & Options
            with gr.Column(scale=1):
                gr.Markdown("### 1. Import")
                spec_file = gr.File(label="Upload OpenAPI Spec", file_types=[".json", ".yaml", ".yml"])
                spec_input = gr.Code(label="Spec (JSON or YAML)", language="yaml", lines=20)
                spec_status = gr.Textbox(label="Status", interactive=False)

                gr.Markdown("### 2. Options")
                include_examples = gr.Checkbox(label="Include examples", value=defaults.include_examples)
                include_auth = gr.Checkbox(label="Include authentication", value=defaults.include_authentication)
                doc_filename = gr.Textbox(label="Output Filename (optional)", placeholder="api-documentation")

                gr.Markdown("### 3. Data Models")
                component_selector = gr.Dropdown(label="Component", choices=[], interactive=True)
                component_preview = gr.JSON(label="Flattened rows")

            # Right Panel: Output
            with gr.Column(scale=1):
                gr.Markdown("### 4. Generate")
                generate_btn = gr.Button("Generate Document", variant="primary")
                validate_btn = gr.Button("Check Round-Trip Fidelity")
                fidelity_score = gr.Textbox(label="Fidelity", interactive=False)
                fidelity_report = gr.JSON(label="Fidelity Report")
                doc_download = gr.File(label="Download Document")
                doc_preview = gr.HTML(label="Preview")

        spec_file.upload(
            fn=load_input_file,
            inputs=[spec_file],
            outputs=[spec_input, spec_status],
        )

        spec_input.change(
            fn=refresh_component_choices,
            inputs=[spec_input],
            outputs=[component_selector],
        )

        component_selector.change(
            fn=preview_component_rows,
            inputs=[spec_input, component_selector],
            outputs=[component_preview],
        )

        generate_btn.click(
            fn=spec_to_doc_handler,
            inputs=[spec_input, include_examples, include_auth, doc_filename],
            outputs=[doc_preview, doc_download, spec_status],
        )

        validate_btn.click(
            fn=fidelity_handler,
            inputs=[spec_input, include_examples, include_auth],
            outputs=[fidelity_score, fidelity_report],
        )

    with gr.Tab("Document → Spec"):
        with gr.Row():
            with gr.Column(scale=1):
                gr.Markdown("### 1. Import")
                doc_file = gr.File(label="Upload Generated Document", file_types=[".html", ".htm"])
                doc_input = gr.Code(label="Document HTML", language="html", lines=20)
                doc_status = gr.Textbox(label="Status", interactive=False)

            with gr.Column(scale=1):
                gr.Markdown("### 2. Output")
                output_format = gr.Radio(
                    choices=[fmt.value for fmt in SpecFormat],
                    value=defaults.output_format.value,
                    label="Output Format",
                )
                spec_filename = gr.Textbox(label="Output Filename (optional)", placeholder="openapi-spec")
                rebuild_btn = gr.Button("Rebuild Spec", variant="primary")
                spec_download = gr.File(label="Download Spec")
                spec_output = gr.Code(label="Rebuilt Spec", language="yaml")

        doc_file.upload(
            fn=load_input_file,
            inputs=[doc_file],
            outputs=[doc_input, doc_status],
        )

        rebuild_btn.click(
            fn=doc_to_spec_handler,
            inputs=[doc_input, output_format, spec_filename],
            outputs=[spec_output, spec_download, doc_status],
        )

if __name__ == "__main__":
    demo.launch()
