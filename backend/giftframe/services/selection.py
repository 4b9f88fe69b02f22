"""
Selection and text-editing state machine.

Shapes: unselected, selected, or selected and editing text (text
elements only). Every transition takes the composition together with
the selection and returns both, because leaving a text edit commits
the pending text into the composition.
"""

import logging
from typing import Optional, Tuple

from giftframe.models.composition import Composition, ElementKind, ElementRef
from giftframe.models.session import SelectionState
from giftframe.services.composition import CompositionService, composition_service

logger = logging.getLogger(__name__)

SelectionResult = Tuple[Composition, SelectionState]


def _selected_ref(selection: SelectionState) -> Optional[ElementRef]:
    if selection.selected_id is None:
        return None
    return ElementRef.parse(selection.selected_id)


class SelectionService:
    """Selection transitions over (composition, selection) pairs."""

    def __init__(self, compositions: CompositionService):
        self.compositions = compositions

    def _commit_pending(self, composition: Composition, selection: SelectionState) -> SelectionResult:
        """Write the in-progress text into its box and leave editing mode."""
        if not selection.editing_text:
            return composition, selection

        ref = _selected_ref(selection)
        if ref is not None and ref.kind == ElementKind.TEXT and selection.pending_text is not None:
            composition = self.compositions.update_text(
                composition, ref.id, {"content": selection.pending_text}
            )
            logger.debug(f"Committed pending text for {ref}")
        return composition, SelectionState(selected_id=selection.selected_id)

    def select(self, composition: Composition, selection: SelectionState, ref: str) -> SelectionResult:
        """
        Select an element.

        A pending text edit on another element is committed before the
        new selection takes effect. Re-selecting the element being edited
        keeps the edit open. Unknown elements leave everything unchanged.
        """
        element_ref = ElementRef.parse(ref)
        if element_ref is None or composition.find(element_ref) is None:
            return composition, selection

        if selection.selected_id == str(element_ref):
            return composition, selection

        composition, _ = self._commit_pending(composition, selection)
        return composition, SelectionState(selected_id=str(element_ref))

    def tap_background(self, composition: Composition, selection: SelectionState) -> SelectionResult:
        composition, _ = self._commit_pending(composition, selection)
        return composition, SelectionState()

    def begin_text_edit(self, composition: Composition, selection: SelectionState, ref: str) -> SelectionResult:
        """Enter editing mode on a text box, seeding the pending text with its content."""
        element_ref = ElementRef.parse(ref)
        if element_ref is None or element_ref.kind != ElementKind.TEXT:
            return composition, selection
        text = composition.texts.get(element_ref.id)
        if text is None:
            return composition, selection
        if selection.editing_text and selection.selected_id == str(element_ref):
            return composition, selection

        composition, _ = self._commit_pending(composition, selection)
        return composition, SelectionState(
            selected_id=str(element_ref),
            editing_text=True,
            pending_text=text.content,
        )

    def edit_text(self, composition: Composition, selection: SelectionState, content: str) -> SelectionResult:
        if not selection.editing_text:
            return composition, selection
        return composition, selection.model_copy(update={"pending_text": content})

    def finish_text_edit(
        self,
        composition: Composition,
        selection: SelectionState,
        commit: bool = True,
    ) -> SelectionResult:
        """Leave editing mode; the element stays selected. commit=False discards the pending text."""
        if not selection.editing_text:
            return composition, selection
        if commit:
            return self._commit_pending(composition, selection)
        return composition, SelectionState(selected_id=selection.selected_id)

    def press_delete(
        self,
        composition: Composition,
        selection: SelectionState,
        focus_in_text_input: bool = False,
    ) -> SelectionResult:
        """
        Delete/backspace shortcut.

        Ignored while a text input has focus or a text edit is open.
        A selected text box is emptied and stays selected; any other
        element is removed and the selection is cleared.
        """
        if focus_in_text_input or selection.editing_text:
            return composition, selection
        ref = _selected_ref(selection)
        if ref is None:
            return composition, selection
        if composition.find(ref) is None:
            return composition, SelectionState()

        if ref.kind == ElementKind.TEXT:
            return self.compositions.clear_text_content(composition, ref.id), selection

        logger.debug(f"Delete key removed {ref}")
        return self.compositions.remove_element(composition, ref), SelectionState()

    def remove_completely(self, composition: Composition, selection: SelectionState) -> SelectionResult:
        """Remove the selected element whatever its kind, text boxes included."""
        ref = _selected_ref(selection)
        if ref is None:
            return composition, selection
        return self.compositions.remove_element(composition, ref), SelectionState()

    def reconcile(self, composition: Composition, selection: SelectionState) -> SelectionState:
        """Drop a selection that points at an element which no longer exists."""
        ref = _selected_ref(selection)
        if ref is None:
            return selection
        if composition.find(ref) is None:
            return SelectionState()
        return selection

    def clean_snapshot(self, composition: Composition, selection: SelectionState) -> SelectionResult:
        """Commit any pending edit and clear the selection so no handles get rendered."""
        composition, _ = self._commit_pending(composition, selection)
        return composition, SelectionState()


# Global service instance
selection_service = SelectionService(composition_service)
