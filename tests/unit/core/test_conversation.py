"""Unit tests for ConversationState."""

from bouwdepot.core.conversation import MODEL_ROLE, USER_ROLE, ConversationState


class TestConversationState:

    def test_messages_kept_in_insertion_order(self):
        """Test that user and model turns are appended in order."""
        conversation = ConversationState()
        conversation.add_user_message("What language?", "DetectLanguage")
        conversation.add_model_message('{"language": {}}', "DetectLanguage")
        conversation.add_user_message("What type?", "VerifyDocumentType")

        assert [m.role for m in conversation.messages] == [USER_ROLE, MODEL_ROLE, USER_ROLE]
        assert [m.content for m in conversation.messages][-1] == "What type?"
        assert len(conversation) == 3

    def test_messages_view_is_a_snapshot(self):
        """Test that the exposed messages cannot be mutated and do not grow later."""
        conversation = ConversationState()
        conversation.add_user_message("first")

        snapshot = conversation.messages
        conversation.add_model_message("reply")

        assert isinstance(snapshot, tuple)
        assert len(snapshot) == 1
        assert len(conversation.messages) == 2

    def test_step_history_filters_by_label(self):
        """Test that step history keeps the step's own and untagged messages."""
        conversation = ConversationState()
        conversation.add_user_message("shared context")
        conversation.add_user_message("language prompt", "DetectLanguage")
        conversation.add_user_message("type prompt", "VerifyDocumentType")

        history = conversation.step_history("VerifyDocumentType")

        assert [m.content for m in history] == ["shared context", "type prompt"]

    def test_formatted_history(self):
        conversation = ConversationState()
        conversation.add_user_message("question")
        conversation.add_model_message("answer")

        assert conversation.formatted_history() == "USER: question\n\nMODEL: answer\n\n"

    def test_each_conversation_has_its_own_id(self):
        assert ConversationState().id != ConversationState().id
        assert ConversationState("fixed").id == "fixed"
