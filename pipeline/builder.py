"""Graph assembly: builds and compiles the IngestState graph for uploads."""

from langgraph.graph import StateGraph, START, END

from pipeline.state import IngestState
from pipeline.router import router
from pipeline.nodes import extract_text_node, extract_fields_node, finish_node


def build_graph(checkpointer=None):
    """
    Assemble the upload pipeline:
        START → extract_text → (router) → extract_fields → END
                                        ↘ finish → END
    No checkpointer by default: the graph has no interrupts and the state carries raw bytes.
    """
    builder = StateGraph(IngestState)

    builder.add_node("extract_text", extract_text_node)
    builder.add_node("extract_fields", extract_fields_node)
    builder.add_node("finish", finish_node)

    builder.add_edge(START, "extract_text")
    builder.add_conditional_edges("extract_text", router)
    builder.add_edge("extract_fields", END)
    builder.add_edge("finish", END)

    return builder.compile(checkpointer=checkpointer)
