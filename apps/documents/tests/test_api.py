import uuid

import pytest
from django.urls import reverse
from rest_framework import status

from apps.documents.models import DocumentFile, GpsImage


def _upload(api_client, client_id, files, step=1, category='electricity_bill'):
    url = reverse('documents:category-documents', args=[client_id, step, category])
    return api_client.post(url, {'files': files}, format='multipart')


# =============================================================================
# Category Document Tests
# =============================================================================

@pytest.mark.django_db
class TestCategoryDocuments:
    """Tests for the category upload and checklist endpoints"""

    def test_upload_requires_auth(self, api_client, solar_client, make_pdf):
        """Anonymous uploads are rejected."""
        response = _upload(api_client, solar_client.id, [make_pdf()])

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_upload_files(self, caller_client, solar_client, make_pdf):
        """Uploaded files come back with signed URLs."""
        response = _upload(caller_client, solar_client.id, [make_pdf('jan.pdf'), make_pdf('feb.pdf')])

        assert response.status_code == status.HTTP_201_CREATED
        assert [d['original_name'] for d in response.data] == ['jan.pdf', 'feb.pdf']
        assert all(d['url'].startswith('/media/documents/') for d in response.data)

    def test_upload_over_capacity(self, caller_client, solar_client, make_pdf):
        """Electricity bills take at most three files."""
        response = _upload(caller_client, solar_client.id, [make_pdf() for _ in range(4)])

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'at most 3' in response.data['error']
        assert not DocumentFile.objects.exists()

    def test_upload_unknown_category(self, caller_client, solar_client, make_pdf):
        """Unknown categories are a bad request."""
        response = _upload(caller_client, solar_client.id, [make_pdf()], category='selfie')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_upload_without_files(self, caller_client, solar_client):
        """The files key is required."""
        url = reverse('documents:category-documents', args=[solar_client.id, 1, 'aadhar'])
        response = caller_client.post(url, {}, format='multipart')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_other_caller_forbidden(self, other_caller_client, solar_client, make_pdf):
        """Callers only reach their own clients."""
        response = _upload(other_caller_client, solar_client.id, [make_pdf()])

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_category(self, caller_client, solar_client, make_pdf):
        """Listing returns the files of one category."""
        _upload(caller_client, solar_client.id, [make_pdf()])
        _upload(caller_client, solar_client.id, [make_pdf()], category='aadhar')

        url = reverse('documents:category-documents', args=[solar_client.id, 1, 'aadhar'])
        response = caller_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]['category'] == 'aadhar'

    def test_checklist(self, caller_client, solar_client, make_pdf):
        """The checklist reports per-category state and completion."""
        _upload(caller_client, solar_client.id, [make_pdf()])

        url = reverse('documents:category-checklist', args=[solar_client.id, 1])
        response = caller_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['completion_percentage'] == 41
        states = {c['category']: c for c in response.data['categories']}
        assert len(states) == 12
        assert states['electricity_bill']['state'] == 'complete'
        assert states['aadhar']['state'] == 'missing'
        assert states['quotation']['state'] == 'optional'

    def test_checklist_unknown_step(self, caller_client, solar_client):
        """Steps outside the workflow are a bad request."""
        url = reverse('documents:category-checklist', args=[solar_client.id, 7])
        response = caller_client.get(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_missing_client(self, caller_client):
        """Unknown clients return not found."""
        url = reverse('documents:category-checklist', args=[uuid.uuid4(), 1])
        response = caller_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_client_documents_grouped(self, caller_client, solar_client, make_pdf):
        """All documents are grouped by step and category."""
        _upload(caller_client, solar_client.id, [make_pdf()])
        _upload(caller_client, solar_client.id, [make_pdf()], step=2, category='income_proofs')

        response = caller_client.get(reverse('documents:client-documents', args=[solar_client.id]))

        assert response.status_code == status.HTTP_200_OK
        assert set(response.data) == {'1', '2'}
        assert list(response.data['2']) == ['income_proofs']


@pytest.mark.django_db
class TestDocumentDetail:
    """Tests for download and delete"""

    @pytest.fixture
    def document_id(self, caller_client, solar_client, make_pdf):
        return _upload(caller_client, solar_client.id, [make_pdf()]).data[0]['id']

    def test_download_url(self, caller_client, document_id):
        """Download returns a URL with its lifetime."""
        response = caller_client.get(reverse('documents:document-download', args=[document_id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['url'].startswith('/media/documents/')
        assert response.data['expires_in'] == 3600

    def test_download_forbidden(self, other_caller_client, document_id):
        """Other callers cannot fetch the file."""
        response = other_caller_client.get(reverse('documents:document-download', args=[document_id]))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_delete(self, caller_client, document_id):
        """Deleting removes the record."""
        response = caller_client.delete(reverse('documents:document-detail', args=[document_id]))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not DocumentFile.objects.exists()

    def test_delete_missing(self, caller_client):
        """Unknown documents return not found."""
        response = caller_client.delete(reverse('documents:document-detail', args=[uuid.uuid4()]))

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# GPS Image Tests
# =============================================================================

@pytest.mark.django_db
class TestGpsImageEndpoints:
    """Tests for the GPS image endpoints"""

    def _upload(self, api_client, client_id, data, category='panel_installation'):
        url = reverse('documents:gps-image-upload', args=[client_id, category])
        return api_client.post(url, data, format='multipart')

    def test_upload_with_coordinates(self, caller_client, solar_client, make_jpeg):
        """Device coordinates are stored and flagged valid."""
        response = self._upload(caller_client, solar_client.id, {
            'file': make_jpeg(),
            'latitude': 19.076,
            'longitude': 72.8777,
            'accuracy': 8,
            'address': 'Andheri East, Mumbai',
        })

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['has_valid_gps'] is True
        assert response.data['latitude'] == '19.076000'
        assert response.data['address'] == 'Andheri East, Mumbai'

    def test_upload_without_location(self, caller_client, solar_client, make_jpeg):
        """Images without GPS are kept but flagged."""
        response = self._upload(caller_client, solar_client.id, {'file': make_jpeg()})

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['has_valid_gps'] is False
        assert response.data['latitude'] is None

    def test_out_of_range_latitude(self, caller_client, solar_client, make_jpeg):
        """Coordinates are range checked."""
        response = self._upload(caller_client, solar_client.id, {
            'file': make_jpeg(), 'latitude': 95, 'longitude': 10,
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_latitude_without_longitude(self, caller_client, solar_client, make_jpeg):
        """Coordinates must be sent as a pair."""
        response = self._upload(caller_client, solar_client.id, {
            'file': make_jpeg(), 'latitude': 19.076,
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'together' in str(response.data)

    def test_pdf_rejected(self, caller_client, solar_client, make_pdf):
        """GPS categories only accept images."""
        response = self._upload(caller_client, solar_client.id, {'file': make_pdf()})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_category_full(self, settings, caller_client, solar_client, make_jpeg):
        """Uploads past the category limit are rejected."""
        settings.SOLARTRACK_GPS_MAX_IMAGES_PER_CATEGORY = 1
        self._upload(caller_client, solar_client.id, {'file': make_jpeg()})

        response = self._upload(caller_client, solar_client.id, {'file': make_jpeg()})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert GpsImage.objects.count() == 1

    def test_list_by_category(self, caller_client, solar_client, make_jpeg):
        """The category filter narrows the list."""
        self._upload(caller_client, solar_client.id, {'file': make_jpeg()})
        self._upload(caller_client, solar_client.id, {'file': make_jpeg()}, category='plant_started')

        url = reverse('documents:gps-image-list', args=[solar_client.id])
        response = caller_client.get(url, {'category': 'plant_started'})

        assert response.status_code == status.HTTP_200_OK
        assert [i['category'] for i in response.data] == ['plant_started']

    def test_url_and_delete(self, caller_client, solar_client, make_jpeg):
        """Images have signed URLs and can be deleted."""
        image_id = self._upload(caller_client, solar_client.id, {'file': make_jpeg()}).data['id']

        response = caller_client.get(reverse('documents:gps-image-url', args=[image_id]))
        assert response.status_code == status.HTTP_200_OK
        assert response.data['url'].startswith('/media/documents/')

        response = caller_client.delete(reverse('documents:gps-image-detail', args=[image_id]))
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not GpsImage.objects.exists()

    def test_other_caller_forbidden(self, other_caller_client, solar_client, make_jpeg):
        """Callers only reach their own clients."""
        response = self._upload(other_caller_client, solar_client.id, {'file': make_jpeg()})

        assert response.status_code == status.HTTP_403_FORBIDDEN
