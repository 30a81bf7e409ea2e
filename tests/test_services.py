"""
Tests for sample documents, the LLM client and notifications
"""
import asyncio
from unittest.mock import MagicMock, patch

import fitz  # PyMuPDF
import pytest
import requests

from firmsync.errors import AgentExecutionError, DocumentNotFoundError
from firmsync.services import DocumentRepository, LLMClient, Notice, NotificationService, SMTPSettings
from firmsync.utils import RetryOptions


class TestDocumentRepository:
    """Test cases for DocumentRepository"""

    def test_reads_text_document(self, documents_dir):
        repository = DocumentRepository(documents_dir)

        assert repository.exists('doc-42')
        assert 'Non-Disclosure' in repository.get_content('doc-42')

    def test_reads_pdf_document(self, documents_dir):
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "Residential lease between landlord and tenant")
        doc.save(str(documents_dir / 'lease-1.pdf'))
        doc.close()

        content = DocumentRepository(documents_dir).get_content('lease-1')

        assert 'landlord and tenant' in content

    def test_pdf_page_limit(self, documents_dir):
        doc = fitz.open()
        for number in range(3):
            doc.new_page().insert_text((72, 72), f"Page marker {number}")
        doc.save(str(documents_dir / 'long.pdf'))
        doc.close()

        content = DocumentRepository(documents_dir, max_pages=1).get_content('long')

        assert 'Page marker 0' in content
        assert 'Page marker 2' not in content

    @pytest.mark.parametrize('document_id', ['missing', '', '../doc-42', 'sub/doc-42'])
    def test_unknown_or_path_like_ids(self, documents_dir, document_id):
        repository = DocumentRepository(documents_dir)

        assert not repository.exists(document_id)
        with pytest.raises(DocumentNotFoundError):
            repository.get_content(document_id)


class TestLLMClient:
    """Test cases for LLMClient"""

    @pytest.fixture
    def client(self):
        return LLMClient('http://localhost:1234/v1/chat/completions', model='test-model', timeout=5,
                         retry_options=RetryOptions(max_attempts=3, initial_delay=0, max_delay=0))

    def _response(self, status_code=200, content="Answer"):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = {'choices': [{'message': {'content': f"  {content}  "}}]}
        return response

    def test_build_prompt_for_review(self, client):
        prompt = client.build_prompt('review', 'Clause 7', {'checklist': ['indemnity', 'termination']})

        assert 'indemnity, termination' in prompt
        assert prompt.endswith('Clause 7')

    def test_custom_prompt_wins(self, client):
        prompt = client.build_prompt('analyze', 'Body', {'prompt': 'List the parties.'})
        assert prompt.startswith('List the parties.')

    @patch('firmsync.services.llm_client.requests.post')
    def test_complete(self, mock_post, client):
        mock_post.return_value = self._response(content="Summary text")

        assert asyncio.run(client.complete("Summarize")) == "Summary text"
        payload = mock_post.call_args.kwargs['json']
        assert payload['model'] == 'test-model'
        assert payload['messages'][1]['content'] == "Summarize"

    @patch('firmsync.services.llm_client.requests.post')
    def test_retries_server_errors(self, mock_post, client):
        mock_post.side_effect = [self._response(503), self._response(503), self._response()]

        assert asyncio.run(client.complete("Analyze")) == "Answer"
        assert mock_post.call_count == 3

    @patch('firmsync.services.llm_client.requests.post')
    def test_client_error_not_retried(self, mock_post, client):
        mock_post.return_value = self._response(400)

        with pytest.raises(AgentExecutionError) as exc_info:
            asyncio.run(client.complete("Analyze"))

        assert exc_info.value.status_code == 400
        assert mock_post.call_count == 1

    @patch('firmsync.services.llm_client.requests.post')
    def test_connection_error_retried(self, mock_post, client):
        mock_post.side_effect = [requests.ConnectionError("refused"), self._response()]

        assert asyncio.run(client.complete("Analyze")) == "Answer"
        assert mock_post.call_count == 2

    @patch('firmsync.services.llm_client.requests.post')
    def test_malformed_response(self, mock_post, client):
        response = self._response()
        response.json.return_value = {'unexpected': True}
        mock_post.return_value = response

        with pytest.raises(AgentExecutionError):
            asyncio.run(client.complete("Analyze"))


class TestNotificationService:
    """Test cases for NotificationService"""

    def _notice(self):
        return Notice(recipient='contracts_team', document_type_id='nda',
                      document_id='doc-42', reason='Step failed', channel='email')

    def test_history(self):
        service = NotificationService(history_size=2)
        for _ in range(3):
            service.notify(self._notice())

        notices = service.recent()
        assert len(notices) == 2
        assert notices[0]['recipient'] == 'contracts_team'
        assert notices[0]['created_at']

    @patch('firmsync.services.notifications.smtplib.SMTP')
    def test_email_sent_when_configured(self, mock_smtp):
        settings = SMTPSettings(host='smtp.example.com', port=587, recipients=['partner@example.com'])
        service = NotificationService(settings)

        service.notify(self._notice())

        server = mock_smtp.return_value.__enter__.return_value
        server.sendmail.assert_called_once()
        assert server.sendmail.call_args.args[1] == ['partner@example.com']

    @patch('firmsync.services.notifications.smtplib.SMTP')
    def test_email_skipped_without_recipients(self, mock_smtp):
        NotificationService(SMTPSettings(host='smtp.example.com')).notify(self._notice())
        mock_smtp.assert_not_called()
