def create_label(client, headers, title):
    response = client.post("/labels", headers=headers, json={"title": title})
    assert response.status_code == 201
    return response.json()

def label_titles(client, headers):
    return [(l["title"], l["order"]) for l in client.get("/labels", headers=headers).json()]


def test_create_and_list_labels(client, alice):
    create_label(client, alice, "urgent")
    create_label(client, alice, "home")
    assert label_titles(client, alice) == [("urgent", 1), ("home", 2)]

def test_labels_are_personal(client, alice, bob):
    create_label(client, alice, "urgent")
    assert client.get("/labels", headers=bob).json() == []

def test_blank_title_is_refused(client, alice):
    response = client.post("/labels", headers=alice, json={"title": "  "})
    assert response.status_code == 400
    assert response.json()["detail"] == "title is required."

def test_rename_label(client, alice):
    label = create_label(client, alice, "urgnet")
    response = client.put(f"/labels/{label['id']}", headers=alice, json={"title": "urgent"})
    assert response.status_code == 200
    assert response.json()["title"] == "urgent"

def test_rename_foreign_label(client, alice, bob):
    label = create_label(client, alice, "urgent")
    response = client.put(f"/labels/{label['id']}", headers=bob, json={"title": "mine"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Label not found"

def test_delete_label_detaches_tasks(client, alice):
    project = client.post("/projects", headers=alice, json={"name": "Work", "view": "list"}).json()
    urgent = create_label(client, alice, "urgent")
    create_label(client, alice, "home")
    task = client.post(
        f"/projects/{project['id']}/tasks",
        headers=alice,
        json={"title": "T", "labels": [urgent["id"]]}
    ).json()

    response = client.delete(f"/labels/{urgent['id']}", headers=alice)
    assert response.status_code == 204

    assert label_titles(client, alice) == [("home", 1)]
    assert client.get(f"/tasks/{task['id']}", headers=alice).json()["labels"] == []

def test_swap_labels(client, alice):
    a = create_label(client, alice, "a")
    b = create_label(client, alice, "b")
    response = client.post(f"/labels/{a['id']}/swap/{b['id']}", headers=alice)
    assert response.status_code == 200
    assert label_titles(client, alice) == [("b", 1), ("a", 2)]
    assert client.post(f"/labels/{a['id']}/swap/9999", headers=alice).status_code == 400

def test_search_labels(client, alice):
    create_label(client, alice, "urgent")
    create_label(client, alice, "home")
    response = client.get("/labels/search/query?q=URG", headers=alice)
    assert [l["title"] for l in response.json()] == ["urgent"]

def test_tasks_of_a_label(client, alice, bob):
    project = client.post("/projects", headers=alice, json={"name": "Work", "view": "list"}).json()
    urgent = create_label(client, alice, "urgent")
    client.post(f"/projects/{project['id']}/tasks", headers=alice, json={"title": "Tagged", "labels": [urgent["id"]]})
    client.post(f"/projects/{project['id']}/tasks", headers=alice, json={"title": "Plain"})

    response = client.get(f"/labels/{urgent['id']}/tasks", headers=alice)
    assert [t["title"] for t in response.json()] == ["Tagged"]
    assert client.get(f"/labels/{urgent['id']}/tasks", headers=bob).status_code == 400
