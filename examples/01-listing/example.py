import asyncio
import os

import kubeaccess


async def main():
    info = kubeaccess.ConnectionInfo(
        server=os.environ.get('K8S_SERVER', 'https://localhost:6443'),
        token=os.environ.get('K8S_TOKEN'),
        insecure=True,
    )
    async with kubeaccess.Cluster(info) as cluster:
        async for pod in cluster.v1.pods.paginate_namespaced('default', page_size=10):
            print(pod.metadata.name, pod.status.phase if pod.status else None)


if __name__ == '__main__':
    kubeaccess.configure(verbose=True)
    asyncio.run(main())
