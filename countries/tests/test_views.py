import io
import os
import shutil
import tempfile
from datetime import datetime, timezone
from unittest import mock

import requests
from django.core.management import CommandError, call_command
from django.test import TestCase
from PIL import Image
from rest_framework import status
from rest_framework.test import APIClient

from countries.errors import PersistenceFailed
from countries.models import Country

from .fakes import fake_sources


class CacheDirMixin:

    def use_temp_cache(self):
        self.cache_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.cache_dir, ignore_errors=True)
        override = self.settings(SUMMARY_CACHE_DIR=self.cache_dir)
        override.enable()
        self.addCleanup(override.disable)


class CountriesAPITestCase(CacheDirMixin, TestCase):
    """Tests for the read endpoints.

    Covered endpoints:
    - GET  /records
    - GET  /records/<name>
    - DELETE /records/<name>
    - GET /status
    - GET /artifact
    """

    def setUp(self):
        self.client = APIClient()
        self.use_temp_cache()
        self.stamp = datetime(2025, 10, 22, 9, 30, tzinfo=timezone.utc)
        Country.objects.create(
            name="Testland",
            capital="Testville",
            region="Test Region",
            population=1000,
            currency_code="TST",
            exchange_rate=2.0,
            estimated_gdp=500.0,
            flag_url="http://example.com/flag.png",
            last_refreshed_at=self.stamp,
        )
        Country.objects.create(
            name="samplestan",
            region="Sample Region",
            population=2000,
            currency_code="SMP",
            exchange_rate=None,
            estimated_gdp=None,
            last_refreshed_at=datetime(2025, 10, 21, tzinfo=timezone.utc),
        )

    def test_list_records_default_sort_and_nulls(self):
        resp = self.client.get('/records')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.json()
        self.assertEqual([c['name'] for c in data], ['samplestan', 'Testland'])
        self.assertIsNone(data[0]['capital'])
        self.assertIsNone(data[0]['estimated_gdp'])
        self.assertIsInstance(data[1]['population'], int)
        self.assertIsInstance(data[1]['exchange_rate'], float)

    def test_list_records_filters_and_sort(self):
        resp = self.client.get('/records', {'region': 'sample region'})
        self.assertEqual([c['name'] for c in resp.json()], ['samplestan'])

        resp = self.client.get('/records', {'currency': 'tst'})
        self.assertEqual([c['name'] for c in resp.json()], ['Testland'])

        resp = self.client.get('/records', {'sort': 'gdp_desc'})
        self.assertEqual(resp.json()[0]['name'], 'Testland')

        resp = self.client.get('/records', {'region': 'Nowhere'})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json(), [])

    def test_legacy_list_route(self):
        resp = self.client.get('/countries')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.json()), 2)

    def test_get_record_case_insensitive_and_not_found(self):
        resp = self.client.get('/records/TESTLAND')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()['name'], 'Testland')

        resp = self.client.get('/records/NoSuchCountry')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.json(), {'error': 'Country not found'})

    def test_delete_record_success_and_not_found(self):
        resp = self.client.delete('/records/SampleStan')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json(), {'success': True})

        resp = self.client.delete('/records/samplestan')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', resp.json())

    def test_status_view(self):
        resp = self.client.get('/status')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json(), {
            'total_countries': 2,
            'last_refreshed_at': '2025-10-22T09:30:00Z',
        })

    def test_status_timestamp_matches_record_format(self):
        status_stamp = self.client.get('/status').json()['last_refreshed_at']
        record_stamp = self.client.get('/records/Testland').json()['last_refreshed_at']
        self.assertEqual(status_stamp, record_stamp)

    def test_status_view_empty_store(self):
        Country.objects.all().delete()
        resp = self.client.get('/status')
        self.assertEqual(resp.json(), {'total_countries': 0, 'last_refreshed_at': None})

    def test_artifact_not_found_and_found(self):
        resp = self.client.get('/artifact')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.json(), {'error': 'Summary image not found'})

        with open(os.path.join(self.cache_dir, 'summary.png'), 'wb') as f:
            f.write(b'PNGDATA')

        resp = self.client.get('/artifact')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp['Content-Type'], 'image/png')
        self.assertEqual(b''.join(resp.streaming_content), b'PNGDATA')

    def test_read_endpoint_failure_is_generic_500(self):
        with mock.patch('countries.store.CountryStore.count', side_effect=RuntimeError('boom')):
            resp = self.client.get('/status')
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(resp.json(), {'error': 'Internal server error'})

    def test_unknown_endpoint_is_json_404(self):
        resp = self.client.get('/nowhere')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', resp.json())


@mock.patch('countries.utils.requests.get')
class RefreshAPITestCase(CacheDirMixin, TestCase):
    """Tests for POST /refresh against mocked external sources."""

    def setUp(self):
        self.client = APIClient()
        self.use_temp_cache()

    def test_refresh_success_writes_rows_and_image(self, mock_get):
        mock_get.side_effect = fake_sources(
            [
                {'name': 'Mockland', 'capital': 'Mock City', 'region': 'Mock Region',
                 'population': 500, 'flag': 'http://example.com/flag.png',
                 'currencies': [{'code': 'USD'}]},
                {'name': 'Nocoin', 'population': 7, 'currencies': []},
            ],
            rates={'USD': 1.0},
        )

        resp = self.client.post('/refresh')

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        body = resp.json()
        self.assertIs(body['success'], True)
        self.assertEqual(body['total_countries'], 2)
        self.assertEqual(body['processed'], 2)

        mockland = Country.objects.get(name='Mockland')
        self.assertEqual(mockland.exchange_rate, 1.0)
        self.assertTrue(500 * 1000 <= mockland.estimated_gdp <= 500 * 2000)
        self.assertEqual(Country.objects.get(name='Nocoin').estimated_gdp, 0)

        resp = self.client.get('/artifact')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        img = Image.open(io.BytesIO(b''.join(resp.streaming_content)))
        self.assertEqual(img.size, (1000, 600))

    def test_legacy_refresh_route(self, mock_get):
        mock_get.side_effect = fake_sources([{'name': 'Chad', 'population': 1, 'currencies': []}])
        resp = self.client.post('/countries/refresh')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(Country.objects.filter(name='Chad').exists())

    def test_unknown_currency_row_is_stored(self, mock_get):
        mock_get.side_effect = fake_sources([{'name': 'A', 'population': 100, 'currencies': [{'code': 'XYZ'}]}])
        self.assertEqual(self.client.post('/refresh').status_code, status.HTTP_200_OK)
        record = self.client.get('/records/a').json()
        self.assertEqual(record['currency_code'], 'XYZ')
        self.assertIsNone(record['exchange_rate'])
        self.assertIsNone(record['estimated_gdp'])

    def test_rate_timeout_is_503(self, mock_get):
        mock_get.side_effect = fake_sources(
            [{'name': 'Mockland', 'population': 500, 'currencies': []}],
            rates_body=requests.exceptions.Timeout('read timed out'),
        )
        resp = self.client.post('/refresh')
        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(resp.json()['error'], 'External data source unavailable')
        self.assertIn('Exchange Rates API', resp.json()['details'])
        self.assertFalse(Country.objects.exists())

    def test_network_error_is_503(self, mock_get):
        mock_get.side_effect = requests.exceptions.RequestException('network error')
        resp = self.client.post('/refresh')
        self.assertEqual(resp.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertIn('Countries API', resp.json()['details'])

    def test_missing_population_is_400(self, mock_get):
        mock_get.side_effect = fake_sources([
            {'name': 'Fine', 'population': 3, 'currencies': []},
            {'name': 'Broken', 'currencies': []},
        ])
        resp = self.client.post('/refresh')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        body = resp.json()
        self.assertEqual(body['error'], 'Validation failed')
        self.assertEqual(body['details']['population'], 'is required')
        self.assertEqual(body['record'], {'index': 1, 'name': 'Broken'})
        self.assertFalse(Country.objects.exists())

    def test_persistence_failure_is_500(self, mock_get):
        mock_get.side_effect = fake_sources([{'name': 'Chad', 'population': 1, 'currencies': []}])
        with mock.patch('countries.refresh.apply_refresh', side_effect=PersistenceFailed('locked')):
            resp = self.client.post('/refresh')
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(resp.json()['error'], 'Internal server error')

    def test_out_of_range_population_is_500(self, mock_get):
        mock_get.side_effect = fake_sources([
            {'name': 'Keep', 'population': 5, 'currencies': []},
            {'name': 'Huge', 'population': 10 ** 20, 'currencies': []},
        ])
        resp = self.client.post('/refresh')
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(resp.json()['details'], 'Refresh was rolled back')
        self.assertFalse(Country.objects.exists())

    def test_refresh_rejects_get(self, mock_get):
        resp = self.client.get('/refresh')
        self.assertEqual(resp.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


@mock.patch('countries.utils.requests.get')
class RefreshCommandTestCase(CacheDirMixin, TestCase):

    def setUp(self):
        self.use_temp_cache()

    def test_seeded_command_is_reproducible(self, mock_get):
        mock_get.side_effect = fake_sources(
            [{'name': 'Euroland', 'population': 10, 'currencies': [{'code': 'EUR'}]}],
            rates={'EUR': 0.5},
        )
        out = io.StringIO()
        call_command('refresh_countries', '--seed', '7', stdout=out)
        first = Country.objects.get().estimated_gdp
        call_command('refresh_countries', '--seed', '7', stdout=out)

        self.assertEqual(Country.objects.get().estimated_gdp, first)
        self.assertIn('Refreshed 1 countries', out.getvalue())

    def test_command_reports_rolled_back_refresh(self, mock_get):
        mock_get.side_effect = fake_sources([{'name': 'Huge', 'population': 10 ** 20, 'currencies': []}])
        with self.assertRaisesMessage(CommandError, 'Refresh rolled back'):
            call_command('refresh_countries', stdout=io.StringIO())
        self.assertFalse(Country.objects.exists())

    def test_command_reports_source_failure(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError('refused')
        with self.assertRaisesMessage(CommandError, 'External data source unavailable'):
            call_command('refresh_countries', stdout=io.StringIO())
