from locust import HttpUser, task, between

class TodoPerformanceTest(HttpUser):
    wait_time = between(1, 3)

    @task
    def test_index(self):
        self.client.get("/")

    @task
    def test_list_todos(self):
        self.client.get("/todos")

    @task
    def test_add_and_toggle(self):
        response = self.client.post("/todos", data={"text": "load test todo"})
        todo_id = response.json().get("id")
        if todo_id:
            self.client.post(f"/todos/{todo_id}/toggle", name="/todos/[id]/toggle")
