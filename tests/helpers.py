"""Raccourcis HTTP partagés par les tests d'API."""

API = "/api"


def register(client, email="alice@example.com", password="secret123", full_name="Alice"):
    """Inscrit un utilisateur et retourne les en-têtes d'autorisation."""
    r = client.post(
        f"{API}/auth/register",
        json={"fullName": full_name, "email": email, "password": password},
    )
    assert r.status_code == 201, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


def create_client(client, headers, name="Acme", rate="50", project="Website"):
    """Crée un client avec son projet initial et retourne le corps JSON."""
    r = client.post(
        f"{API}/clients",
        json={"name": name, "hourlyRate": rate, "projectName": project},
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()


def create_entry(client, headers, project_id, date, duration=3600, start="09:00", desc=""):
    """Crée une saisie et retourne le corps JSON."""
    r = client.post(
        f"{API}/time-entries",
        json={
            "projectId": project_id,
            "date": date,
            "startTime": start,
            "duration": duration,
            "description": desc,
        },
        headers=headers,
    )
    assert r.status_code == 201, r.text
    return r.json()
