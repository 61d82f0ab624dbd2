from datetime import datetime, timezone

ADMIN_EMAIL = 'admin@rosario.store'


def make_config(tmp_path, **extra):
    config = {
        'DATA_DIR': str(tmp_path / 'data'),
        'LOGS_DIR': str(tmp_path / 'logs'),
        'ADMIN_EMAIL': ADMIN_EMAIL,
        'LEDGER_ATOMIC_WRITES': False,
        'BLOB_URL_PREFIX': '/media',
        'ENABLE_PROFILING': False,
    }
    config.update(extra)
    return config


def at(day, hour=12):
    """Fixed timestamp helper: october 2026."""
    return datetime(2026, 10, day, hour, tzinfo=timezone.utc)


def add_customer(container, name='Ana', email='ana@x.com', limit=100.0, debt=0.0):
    customer_id = container.customer_repo.create({
        'name': name,
        'email': email,
        'phone': '',
        'creditLimit': limit,
        'currentDebt': debt,
    })
    return container.customer_repo.get(customer_id)


def add_credit(container, user_id, amount, paid=0.0, status='pending', created=None, description='Mercado'):
    created = created or at(1)
    return container.credit_repo.create({
        'userId': user_id,
        'amount': amount,
        'paidAmount': paid,
        'description': description,
        'status': status,
        'createdAt': created,
        'date': created,
        'month': 'octubre de 2026',
    })


def add_personal(container, user_id, description='Pan', status='pending', created=None):
    return container.credit_repo.create({
        'userId': user_id,
        'description': description,
        'status': status,
        'createdAt': created or at(1),
    })


def register_and_login(app, client, email, password='secreto123'):
    """Creates an account through the CLI command and signs in; returns the CSRF token."""
    runner = app.test_cli_runner()
    result = runner.invoke(args=['create-account', email, password])
    assert result.exit_code == 0, result.output
    r = client.post('/api/auth/login', json={'email': email, 'password': password})
    assert r.status_code == 200
    return r.get_json()['csrfToken']
