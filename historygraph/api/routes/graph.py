"""
historygraph/api/routes/graph.py

Workflow history graph endpoints.

PUT    /graph/{workflow_id}/{run_id}/history
    Replace the event list of a run's graph session.  Resets the window.

POST   /graph/{workflow_id}/{run_id}/select
    Select an event and receive the positioned elements around it, or
    ``shouldRedraw: false`` when the current rendering still covers it.

DELETE /graph/{workflow_id}/{run_id}
    Forget a run's session.
"""
from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from historygraph.api.middleware import ELEMENT_COUNT_HEADER
from historygraph.api.routes import require_api_key
from historygraph.graph import GraphEdge, GraphNode, GraphResult
from historygraph.models.schemas.event import HistoryLoaded, HistoryUpload
from historygraph.models.schemas.graph import (
    EdgeData,
    EdgeElement,
    NodeData,
    NodeElement,
    Position,
    SelectRequest,
    SelectResponse,
)
from historygraph.storage.session_store import (
    SessionNotFoundError,
    SessionStore,
    get_session_store,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


def _node_element(node: GraphNode) -> NodeElement:
    return NodeElement(
        data=NodeData(
            id=node.id,
            name=node.name,
            timestamp=node.timestamp,
            status=node.status,
            child_route=node.child_route,
            new_execution_run_id=node.new_execution_run_id,
            level=node.level,
            time_index=node.time_index,
            time_index_secondary=node.time_index_secondary,
        ),
        position=Position(x=node.x or 0.0, y=node.y or 0.0),
    )


def _edge_element(edge: GraphEdge) -> EdgeElement:
    return EdgeElement(
        data=EdgeData(source=edge.source, target=edge.target, type=edge.type.value)
    )


def _to_response(result: GraphResult) -> SelectResponse:
    """Convert an engine result into the wire schema, nodes before edges."""
    elements: list[NodeElement | EdgeElement] = []
    for element in result.elements:
        if isinstance(element, GraphNode):
            elements.append(_node_element(element))
        else:
            elements.append(_edge_element(element))

    return SelectResponse(
        should_redraw=result.should_redraw,
        previous_execution_run_id=result.previous_execution_run_id,
        parent_workflow_execution=result.parent_workflow_execution,
        elements=elements,
    )


@router.put(
    "/{workflow_id}/{run_id}/history",
    response_model=HistoryLoaded,
    summary="Load the event history of a workflow run",
)
async def load_history(
    workflow_id: str,
    run_id: str,
    body: HistoryUpload,
    store: SessionStore = Depends(get_session_store),
    _key: str = Depends(require_api_key),
) -> HistoryLoaded:
    """Replace the run's event list.  Events must be in history order."""
    count = store.load((workflow_id, run_id), body.events)
    logger.info("history_loaded", workflow_id=workflow_id, run_id=run_id, events=count)
    return HistoryLoaded(event_count=count)


@router.post(
    "/{workflow_id}/{run_id}/select",
    response_model=SelectResponse,
    summary="Select an event and get the graph around it",
)
async def select_event(
    workflow_id: str,
    run_id: str,
    body: SelectRequest,
    response: Response,
    store: SessionStore = Depends(get_session_store),
    _key: str = Depends(require_api_key),
) -> SelectResponse:
    """Return positioned graph elements for the selected event.

    Raises 404 if no history was loaded for the run.
    """
    try:
        result = store.select((workflow_id, run_id), body.selected_event_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    response.headers[ELEMENT_COUNT_HEADER] = str(len(result.elements))
    return _to_response(result)


@router.delete(
    "/{workflow_id}/{run_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Forget a workflow run's graph session",
)
async def drop_session(
    workflow_id: str,
    run_id: str,
    store: SessionStore = Depends(get_session_store),
    _key: str = Depends(require_api_key),
) -> Response:
    if not store.drop((workflow_id, run_id)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No history loaded for {workflow_id}/{run_id}",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
